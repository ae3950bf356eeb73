"""
Tests for document containers and JSON serialization.
"""

import json
import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


def make_fragment(text, x, y, w=0.2, h=0.02, confidence=1.0):
    from docstruct.geometry import BoundingBox
    from docstruct.models import TextFragment

    return TextFragment(text, BoundingBox(x, y, w, h), confidence)


@pytest.fixture
def rich_fragments():
    """A heading, two paragraphs, a bullet list and a 2x2 table."""
    return [
        make_fragment("Quarterly Report", 0.1, 0.90, w=0.5, h=0.04),
        make_fragment("Revenue grew in every region", 0.1, 0.84, w=0.5),
        make_fragment("and costs stayed flat.", 0.1, 0.815, w=0.5),
        make_fragment("Contact ops@example.com for details", 0.1, 0.75, w=0.5, confidence=0.6),
        make_fragment("• Apples", 0.1, 0.65, w=0.3),
        make_fragment("• Pears", 0.1, 0.62, w=0.3),
        make_fragment("Region", 0.1, 0.50),
        make_fragment("Sales", 0.5, 0.50),
        make_fragment("North", 0.1, 0.47),
        make_fragment("42", 0.5, 0.47, confidence=0.7),
    ]


@pytest.fixture
def rich_page(rich_fragments):
    from docstruct.assembler import DocumentAssembler
    from docstruct.config import PipelineConfig

    return DocumentAssembler(PipelineConfig(workers=1)).process_page(rich_fragments)


class TestEntitySerialization:
    """Test to_dict / from_dict on the data model."""

    def test_fragment_keys(self):
        """Test fragment serialization keys."""
        fragment = make_fragment("hi", 0.1, 0.2, confidence=0.5)

        data = fragment.to_dict()

        assert set(data) == {"id", "text", "boundingBox", "confidence"}
        assert set(data["boundingBox"]) == {"x", "y", "width", "height"}

    def test_fragment_round_trip(self):
        """Test fragment dict round trip."""
        from docstruct.models import TextFragment

        fragment = make_fragment("hi", 0.1, 0.2, confidence=0.5)

        assert TextFragment.from_dict(fragment.to_dict()) == fragment

    def test_fragment_without_id_gets_one(self):
        """Test a missing id is generated on load."""
        from docstruct.models import TextFragment

        fragment = TextFragment.from_dict({
            "text": "hi",
            "boundingBox": {"x": 0.1, "y": 0.2, "width": 0.3, "height": 0.02}
        })

        assert fragment.id
        assert fragment.confidence == 1.0

    def test_missing_key_raises(self):
        """Test a missing required key names the key."""
        from docstruct.models import TextFragment

        with pytest.raises(ValueError, match="boundingBox"):
            TextFragment.from_dict({"text": "hi"})

    def test_not_an_object_raises(self):
        """Test non-object input is rejected."""
        from docstruct.models import TextFragment

        with pytest.raises(ValueError):
            TextFragment.from_dict(["hi"])

    def test_table_keys(self, rich_page):
        """Test table serialization keys."""
        data = rich_page.tables[0].to_dict()

        assert data["columnCount"] == 2
        cell = data["rows"][0]["cells"][0]
        assert {"text", "boundingBox", "column", "row"} <= set(cell)
        assert data["rows"][0]["isHeader"] is False

    def test_list_keys(self, rich_page):
        """Test list serialization keys."""
        data = rich_page.lists[0].to_dict()

        assert data["type"] == "unordered"
        assert {"text", "marker", "level"} <= set(data["items"][0])


class TestStructuredDocument:
    """Test StructuredDocument."""

    def test_json_round_trip(self, rich_page):
        """Test page JSON round trip."""
        from docstruct.document import StructuredDocument

        data = json.loads(json.dumps(rich_page.to_dict()))

        assert StructuredDocument.from_dict(data) == rich_page

    def test_top_level_keys(self, rich_page):
        """Test page serialization keys."""
        data = rich_page.to_dict()

        assert set(data) == {
            "id", "size", "textFragments", "headings", "paragraphs",
            "tables", "links", "lists", "columns"
        }
        assert data["size"] == [1.0, 1.0]

    def test_bad_size_raises(self, rich_page):
        """Test a malformed page size is rejected."""
        from docstruct.document import StructuredDocument

        data = rich_page.to_dict()
        data["size"] = [1.0]

        with pytest.raises(ValueError):
            StructuredDocument.from_dict(data)

    def test_full_text(self):
        """Test full text reads top to bottom, then left to right."""
        from docstruct.document import StructuredDocument

        document = StructuredDocument(fragments=[
            make_fragment("Bottom", 0.5, 0.5),
            make_fragment("world", 0.5, 0.885),
            make_fragment("Hello", 0.1, 0.88),
        ])

        assert document.full_text == "Hello world Bottom"

    def test_helpers(self, rich_page):
        """Test table, list and column helpers."""
        assert rich_page.has_tables
        assert rich_page.has_lists
        assert not rich_page.is_multi_column

    def test_empty_document(self):
        """Test an empty page."""
        from docstruct.document import StructuredDocument

        document = StructuredDocument()

        assert document.elements == []
        assert document.full_text == ""
        assert not document.has_tables


class TestDocumentElement:
    """Test the element tagged union."""

    def test_element_order(self, rich_page):
        """Test elements come out in reading order."""
        from docstruct.document import ElementType

        kinds = [e.kind for e in rich_page.elements]

        assert kinds == [
            ElementType.HEADING,
            ElementType.PARAGRAPH,
            ElementType.PARAGRAPH,
            ElementType.LIST,
            ElementType.TABLE,
        ]

    def test_element_text(self, rich_page):
        """Test element text for lists and tables."""
        texts = [e.text for e in rich_page.elements]

        assert texts[0] == "Quarterly Report"
        assert texts[3] == "Apples\nPears"
        assert texts[4] == "Region\tSales\nNorth\t42"

    def test_element_bbox(self, rich_page):
        """Test element bounding box."""
        heading = rich_page.elements[0]

        assert heading.bbox == rich_page.headings[0].bbox

    def test_element_round_trip(self, rich_page):
        """Test element dict round trip."""
        from docstruct.document import DocumentElement

        for element in rich_page.elements:
            assert DocumentElement.from_dict(element.to_dict()) == element

    def test_fragment_element_round_trip(self):
        """Test the loose fragment element."""
        from docstruct.document import DocumentElement, ElementType

        element = DocumentElement(ElementType.FRAGMENT, make_fragment("loose", 0.1, 0.1))

        data = element.to_dict()

        assert data["type"] == "textFragment"
        assert DocumentElement.from_dict(data) == element
        assert element.text == "loose"

    def test_unknown_element_type(self):
        """Test an unknown element type is rejected."""
        from docstruct.document import DocumentElement

        with pytest.raises(ValueError, match="figure"):
            DocumentElement.from_dict({"type": "figure"})


class TestMultiPageDocument:
    """Test MultiPageDocument."""

    @pytest.fixture
    def pages(self, rich_page):
        from docstruct.document import StructuredDocument

        second = StructuredDocument(fragments=[make_fragment("Second page", 0.1, 0.5)])
        return [rich_page, second]

    def test_page_access(self, pages):
        """Test page lookup by index."""
        from docstruct.document import MultiPageDocument

        document = MultiPageDocument(pages=pages)

        assert document.page_count == 2
        assert document.page(0) is pages[0]
        assert document.page(2) is None
        assert document.page(-1) is None

    def test_aggregates(self, pages):
        """Test structures gathered across pages."""
        from docstruct.document import MultiPageDocument

        document = MultiPageDocument(pages=pages)

        assert [h.text for h in document.all_headings] == ["Quarterly Report"]
        assert len(document.all_tables) == 1
        assert len(document.all_lists) == 1
        assert [l.url for l in document.all_links] == ["mailto:ops@example.com"]

    def test_full_text_separator(self, pages):
        """Test pages joined by the page separator."""
        from docstruct.document import MultiPageDocument

        document = MultiPageDocument(pages=pages)

        assert document.full_text == pages[0].full_text + "\n\n---\n\n" + "Second page"

    def test_json_round_trip(self, pages):
        """Test multi-page JSON round trip."""
        from docstruct.document import MultiPageDocument

        document = MultiPageDocument(pages=pages, metrics={"pages_processed": 2})

        data = json.loads(json.dumps(document.to_dict()))

        assert MultiPageDocument.from_dict(data) == document

    def test_missing_pages_raises(self):
        """Test a document without pages is rejected."""
        from docstruct.document import MultiPageDocument

        with pytest.raises(ValueError, match="pages"):
            MultiPageDocument.from_dict({"id": "x"})


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
