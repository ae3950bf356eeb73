"""
Document containers for reconstructed structure.

Provides:
- DocumentElement: tagged union over heading / paragraph / table / list / fragment
- StructuredDocument: one page with every detected entity and its element stream
- MultiPageDocument: ordered pages with cross-page accessors
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from functools import cmp_to_key
from typing import Any, Dict, List, Optional, Tuple, Union

from .geometry import BoundingBox
from .layout import LayoutAnalyzer
from .models import (
    Column, DocList, Heading, Link, Paragraph, Table, TextFragment,
    _new_id, _require
)

logger = logging.getLogger(__name__)

PAGE_SEPARATOR = "\n\n---\n\n"


# ============================================================================
# Elements
# ============================================================================

class ElementType(Enum):
    """Kinds of document elements."""
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    TABLE = "table"
    LIST = "list"
    FRAGMENT = "textFragment"


ElementValue = Union[Heading, Paragraph, Table, DocList, TextFragment]

_ELEMENT_CLASSES = {
    ElementType.HEADING: Heading,
    ElementType.PARAGRAPH: Paragraph,
    ElementType.TABLE: Table,
    ElementType.LIST: DocList,
    ElementType.FRAGMENT: TextFragment,
}


@dataclass(frozen=True)
class DocumentElement:
    """One entry of a document's ordered element stream."""
    kind: ElementType
    value: ElementValue

    @property
    def bbox(self) -> BoundingBox:
        return self.value.bbox

    @property
    def text(self) -> str:
        if self.kind == ElementType.TABLE:
            return "\n".join("\t".join(row) for row in self.value.text_grid)
        if self.kind == ElementType.LIST:
            return "\n".join(item.text for item in self.value.items)
        return self.value.text

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind.value,
            self.kind.value: self.value.to_dict()
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DocumentElement':
        type_name = _require(data, "type", "Document element")
        try:
            kind = ElementType(type_name)
        except ValueError:
            raise ValueError(f"Unknown document element type: {type_name!r}")
        value = _ELEMENT_CLASSES[kind].from_dict(_require(data, kind.value, "Document element"))
        return cls(kind=kind, value=value)


# ============================================================================
# Structured Document
# ============================================================================

def _compare_top_to_bottom(a: TextFragment, b: TextFragment) -> int:
    if abs(a.bbox.max_y - b.bbox.max_y) > 0.01:
        return -1 if a.bbox.max_y > b.bbox.max_y else 1
    return (a.bbox.min_x > b.bbox.min_x) - (a.bbox.min_x < b.bbox.min_x)


@dataclass(frozen=True)
class StructuredDocument:
    """A single page reconstructed into structural entities."""
    size: Tuple[float, float] = (1.0, 1.0)
    fragments: List[TextFragment] = field(default_factory=list)
    headings: List[Heading] = field(default_factory=list)
    paragraphs: List[Paragraph] = field(default_factory=list)
    tables: List[Table] = field(default_factory=list)
    links: List[Link] = field(default_factory=list)
    lists: List[DocList] = field(default_factory=list)
    columns: List[Column] = field(default_factory=list)
    id: str = field(default_factory=_new_id)

    @property
    def is_multi_column(self) -> bool:
        return len(self.columns) > 1

    @property
    def has_tables(self) -> bool:
        return bool(self.tables)

    @property
    def has_lists(self) -> bool:
        return bool(self.lists)

    @property
    def full_text(self) -> str:
        """All fragment text, top to bottom then left to right."""
        ordered = sorted(self.fragments, key=cmp_to_key(_compare_top_to_bottom))
        return " ".join(f.text for f in ordered)

    @property
    def elements(self) -> List[DocumentElement]:
        return self.ordered_elements()

    def ordered_elements(self, line_threshold: float = 0.5) -> List[DocumentElement]:
        """
        Headings, paragraphs, tables and lists in reading order.

        Multi-column pages read column by column (by the column band of each
        element's center), each column top to bottom. Single-column pages read
        top to bottom, with elements on the same line left to right.
        """
        elements = (
            [DocumentElement(ElementType.HEADING, h) for h in self.headings] +
            [DocumentElement(ElementType.PARAGRAPH, p) for p in self.paragraphs] +
            [DocumentElement(ElementType.TABLE, t) for t in self.tables] +
            [DocumentElement(ElementType.LIST, l) for l in self.lists]
        )
        analyzer = LayoutAnalyzer(line_threshold=line_threshold)
        return analyzer.sort_in_reading_order(elements, lambda e: e.bbox, self.columns)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "size": [self.size[0], self.size[1]],
            "textFragments": [f.to_dict() for f in self.fragments],
            "headings": [h.to_dict() for h in self.headings],
            "paragraphs": [p.to_dict() for p in self.paragraphs],
            "tables": [t.to_dict() for t in self.tables],
            "links": [l.to_dict() for l in self.links],
            "lists": [l.to_dict() for l in self.lists],
            "columns": [c.to_dict() for c in self.columns]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StructuredDocument':
        size = _require(data, "size", "Document")
        if not isinstance(size, (list, tuple)) or len(size) != 2:
            raise ValueError(f"Document size must be [width, height], got {size!r}")

        return cls(
            size=(float(size[0]), float(size[1])),
            fragments=[TextFragment.from_dict(f) for f in _require(data, "textFragments", "Document")],
            headings=[Heading.from_dict(h) for h in data.get("headings", [])],
            paragraphs=[Paragraph.from_dict(p) for p in data.get("paragraphs", [])],
            tables=[Table.from_dict(t) for t in data.get("tables", [])],
            links=[Link.from_dict(l) for l in data.get("links", [])],
            lists=[DocList.from_dict(l) for l in data.get("lists", [])],
            columns=[Column.from_dict(c) for c in data.get("columns", [])],
            id=str(data.get("id") or _new_id())
        )


# ============================================================================
# Multi-Page Document
# ============================================================================

@dataclass(frozen=True)
class MultiPageDocument:
    """Pages in input order, plus optional processing metrics."""
    pages: List[StructuredDocument] = field(default_factory=list)
    metrics: Optional[Dict[str, Any]] = None
    id: str = field(default_factory=_new_id)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def page(self, index: int) -> Optional[StructuredDocument]:
        """Page at a zero-based index, None when out of range."""
        if 0 <= index < len(self.pages):
            return self.pages[index]
        return None

    @property
    def all_headings(self) -> List[Heading]:
        return [h for page in self.pages for h in page.headings]

    @property
    def all_tables(self) -> List[Table]:
        return [t for page in self.pages for t in page.tables]

    @property
    def all_links(self) -> List[Link]:
        return [l for page in self.pages for l in page.links]

    @property
    def all_lists(self) -> List[DocList]:
        return [l for page in self.pages for l in page.lists]

    @property
    def full_text(self) -> str:
        return PAGE_SEPARATOR.join(page.full_text for page in self.pages)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "id": self.id,
            "pages": [p.to_dict() for p in self.pages]
        }
        if self.metrics is not None:
            result["metrics"] = self.metrics
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MultiPageDocument':
        return cls(
            pages=[StructuredDocument.from_dict(p) for p in _require(data, "pages", "Multi-page document")],
            metrics=data.get("metrics"),
            id=str(data.get("id") or _new_id())
        )
