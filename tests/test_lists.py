"""
Tests for list detection.
"""

import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


def make_lines(*texts):
    """One fragment per text, stacked top to bottom."""
    from docstruct.geometry import BoundingBox
    from docstruct.models import TextFragment

    return [
        TextFragment(text, BoundingBox(0.1, 0.9 - i * 0.04, 0.4, 0.02))
        for i, text in enumerate(texts)
    ]


def detect(fragments, **kwargs):
    from docstruct.lists import ListDetector
    return ListDetector(**kwargs).detect(fragments)


class TestParseListMarker:
    """Test marker recognition."""

    @pytest.mark.parametrize("text,marker,kind,rest", [
        ("• Apples", "•", "unordered", "Apples"),
        ("- dash item", "-", "unordered", "dash item"),
        ("* starred", "*", "unordered", "starred"),
        ("1. Intro", "1.", "ordered", "Intro"),
        ("12) Twelfth", "12)", "ordered", "Twelfth"),
        ("(a) first", "(a)", "ordered", "first"),
        ("b. second", "b.", "ordered", "second"),
        ("iv) fourth", "iv)", "ordered", "fourth"),
        ("[ ] todo", "[ ]", "checkbox", "todo"),
        ("[x] done", "[x]", "checkbox", "done"),
        ("☑ checked", "☑", "checkbox", "checked"),
    ])
    def test_markers(self, text, marker, kind, rest):
        """Test recognized markers."""
        from docstruct.lists import parse_list_marker
        from docstruct.models import ListType

        assert parse_list_marker(text) == (marker, ListType(kind), rest)

    @pytest.mark.parametrize("text", ["plain text", "", "   ", "1.5 million", "Version2", "A. Upper", "(B) upper"])
    def test_no_marker(self, text):
        """Test text without a marker."""
        from docstruct.lists import parse_list_marker

        assert parse_list_marker(text) is None


class TestListDetector:
    """Test ListDetector."""

    def test_type_change_closes_list(self):
        """A trailing item of another type neither joins nor survives alone."""
        from docstruct.models import ListType

        lists = detect(make_lines("• A", "• B", "1. C"))

        assert len(lists) == 1
        assert lists[0].type == ListType.UNORDERED
        assert [i.text for i in lists[0].items] == ["A", "B"]

    def test_ordered_then_unordered(self):
        """Test a type change starts a new list."""
        from docstruct.models import ListType

        lists = detect(make_lines("1. one", "2. two", "• x", "• y"))

        assert [l.type for l in lists] == [ListType.ORDERED, ListType.UNORDERED]

    def test_plain_text_splits_lists(self):
        """Test plain text ends a list."""
        lists = detect(make_lines("• A", "• B", "Some paragraph", "• C", "• D"))

        assert [[i.text for i in l.items] for l in lists] == [["A", "B"], ["C", "D"]]

    def test_items_keep_markers(self):
        """Test items keep their markers."""
        lists = detect(make_lines("1. one", "2. two"))

        assert [i.marker for i in lists[0].items] == ["1.", "2."]
        assert all(i.level == 0 for i in lists[0].items)

    def test_checkbox_list(self):
        """Test checkbox list."""
        from docstruct.models import ListType

        lists = detect(make_lines("[ ] milk", "[x] eggs", "☐ bread"))

        assert len(lists) == 1
        assert lists[0].type == ListType.CHECKBOX
        assert len(lists[0].items) == 3

    def test_scans_top_to_bottom(self):
        """Test items in top to bottom order."""
        fragments = list(reversed(make_lines("• first", "• second", "• third")))

        lists = detect(fragments)

        assert [i.text for i in lists[0].items] == ["first", "second", "third"]

    def test_minimum_items(self):
        """Test the minimum item count."""
        assert detect(make_lines("• lonely")) == []
        assert detect(make_lines("• A", "• B"), minimum_items=3) == []

    def test_list_bbox_is_union_of_items(self):
        """Test list box covers its items."""
        from docstruct.geometry import union_all

        doc_list = detect(make_lines("• A", "• B"))[0]

        assert doc_list.bbox == union_all(i.bbox for i in doc_list.items)

    def test_empty(self):
        """Test empty input."""
        assert detect([]) == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
