"""
Structural data model for document reconstruction.

Provides:
- TextFragment (recognized text span, the pipeline's only input)
- Column, Heading, Paragraph
- Table / TableRow / TableCell
- DocList / ListItem
- Link

Every entity is a frozen dataclass. Fragments are shared by reference into
the entities built from them and are never copied or mutated.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .geometry import BoundingBox, union_all


def _new_id() -> str:
    return str(uuid.uuid4())


def _require(data: Dict[str, Any], key: str, kind: str) -> Any:
    try:
        return data[key]
    except KeyError:
        raise ValueError(f"{kind} is missing key: '{key}'")
    except TypeError:
        raise ValueError(f"{kind} must be a JSON object, got {type(data).__name__}")


def _fragments_from(data: Dict[str, Any], kind: str) -> List['TextFragment']:
    return [TextFragment.from_dict(f) for f in _require(data, "textFragments", kind)]


# ============================================================================
# Enums
# ============================================================================

class ListType(Enum):
    """Types of detected lists."""
    UNORDERED = "unordered"
    ORDERED = "ordered"
    CHECKBOX = "checkbox"
    UNKNOWN = "unknown"


class LinkType(Enum):
    """Types of detected links."""
    URL = "url"
    EMAIL = "email"
    PHONE = "phone"
    FILE = "file"
    UNKNOWN = "unknown"


# ============================================================================
# Text Fragments
# ============================================================================

@dataclass(frozen=True)
class TextFragment:
    """A recognized text span with a normalized box and confidence score."""
    text: str
    bbox: BoundingBox
    confidence: float = 1.0
    id: str = field(default_factory=_new_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "boundingBox": self.bbox.to_dict(),
            "confidence": self.confidence
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TextFragment':
        fragment_id = data.get("id") if isinstance(data, dict) else None
        return cls(
            text=str(_require(data, "text", "Text fragment")),
            bbox=BoundingBox.from_dict(_require(data, "boundingBox", "Text fragment")),
            confidence=float(data.get("confidence", 1.0)),
            id=str(fragment_id) if fragment_id is not None else _new_id()
        )


# ============================================================================
# Columns
# ============================================================================

@dataclass(frozen=True)
class Column:
    """A vertical band [min_x, max_x) of the page and the fragments centered in it."""
    index: int
    min_x: float
    max_x: float
    fragments: List[TextFragment] = field(default_factory=list)
    id: str = field(default_factory=_new_id)

    @property
    def bbox(self) -> BoundingBox:
        return union_all(f.bbox for f in self.fragments)

    @property
    def text(self) -> str:
        ordered = sorted(self.fragments, key=lambda f: -f.bbox.max_y)
        return "\n".join(f.text for f in ordered)

    def contains_x(self, x: float) -> bool:
        return self.min_x <= x < self.max_x

    def distance_to_x(self, x: float) -> float:
        """Distance from x to the band, 0 when inside."""
        if x < self.min_x:
            return self.min_x - x
        if x >= self.max_x:
            return x - self.max_x
        return 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "index": self.index,
            "minX": self.min_x,
            "maxX": self.max_x,
            "boundingBox": self.bbox.to_dict(),
            "textFragments": [f.to_dict() for f in self.fragments]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Column':
        return cls(
            index=int(_require(data, "index", "Column")),
            min_x=float(_require(data, "minX", "Column")),
            max_x=float(_require(data, "maxX", "Column")),
            fragments=_fragments_from(data, "Column"),
            id=str(data.get("id") or _new_id())
        )


# ============================================================================
# Headings and Paragraphs
# ============================================================================

@dataclass(frozen=True)
class Heading:
    """A detected heading (level 1 = largest)."""
    text: str
    level: int
    bbox: BoundingBox
    fragments: List[TextFragment] = field(default_factory=list)
    id: str = field(default_factory=_new_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "boundingBox": self.bbox.to_dict(),
            "level": self.level,
            "textFragments": [f.to_dict() for f in self.fragments]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Heading':
        return cls(
            text=str(_require(data, "text", "Heading")),
            level=int(_require(data, "level", "Heading")),
            bbox=BoundingBox.from_dict(_require(data, "boundingBox", "Heading")),
            fragments=_fragments_from(data, "Heading"),
            id=str(data.get("id") or _new_id())
        )


@dataclass(frozen=True)
class Paragraph:
    """A run of adjacent fragments read as one block of text."""
    text: str
    bbox: BoundingBox
    fragments: List[TextFragment] = field(default_factory=list)
    id: str = field(default_factory=_new_id)

    @classmethod
    def from_fragments(cls, fragments: List[TextFragment]) -> 'Paragraph':
        return cls(
            text=" ".join(f.text for f in fragments),
            bbox=union_all(f.bbox for f in fragments),
            fragments=list(fragments)
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "boundingBox": self.bbox.to_dict(),
            "textFragments": [f.to_dict() for f in self.fragments]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Paragraph':
        return cls(
            text=str(_require(data, "text", "Paragraph")),
            bbox=BoundingBox.from_dict(_require(data, "boundingBox", "Paragraph")),
            fragments=_fragments_from(data, "Paragraph"),
            id=str(data.get("id") or _new_id())
        )


# ============================================================================
# Tables
# ============================================================================

@dataclass(frozen=True)
class TableCell:
    """A single table cell, indexed by its position within the row."""
    text: str
    row: int
    column: int
    bbox: BoundingBox
    fragments: List[TextFragment] = field(default_factory=list)
    id: str = field(default_factory=_new_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "boundingBox": self.bbox.to_dict(),
            "textFragments": [f.to_dict() for f in self.fragments],
            "column": self.column,
            "row": self.row
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TableCell':
        return cls(
            text=str(_require(data, "text", "Table cell")),
            row=int(_require(data, "row", "Table cell")),
            column=int(_require(data, "column", "Table cell")),
            bbox=BoundingBox.from_dict(_require(data, "boundingBox", "Table cell")),
            fragments=_fragments_from(data, "Table cell"),
            id=str(data.get("id") or _new_id())
        )


@dataclass(frozen=True)
class TableRow:
    """A table row."""
    cells: List[TableCell]
    bbox: BoundingBox
    is_header: bool = False
    id: str = field(default_factory=_new_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "cells": [c.to_dict() for c in self.cells],
            "boundingBox": self.bbox.to_dict(),
            "isHeader": self.is_header
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TableRow':
        return cls(
            cells=[TableCell.from_dict(c) for c in _require(data, "cells", "Table row")],
            bbox=BoundingBox.from_dict(_require(data, "boundingBox", "Table row")),
            is_header=bool(data.get("isHeader", False)),
            id=str(data.get("id") or _new_id())
        )


@dataclass(frozen=True)
class Table:
    """A detected table."""
    rows: List[TableRow]
    column_count: int
    bbox: BoundingBox
    id: str = field(default_factory=_new_id)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def text_grid(self) -> List[List[str]]:
        return [[cell.text for cell in row.cells] for row in self.rows]

    @property
    def fragments(self) -> List[TextFragment]:
        return [f for row in self.rows for cell in row.cells for f in cell.fragments]

    def cell(self, row: int, column: int) -> Optional[TableCell]:
        if not 0 <= row < len(self.rows):
            return None
        cells = self.rows[row].cells
        if not 0 <= column < len(cells):
            return None
        return cells[column]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "boundingBox": self.bbox.to_dict(),
            "rows": [r.to_dict() for r in self.rows],
            "columnCount": self.column_count
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Table':
        return cls(
            rows=[TableRow.from_dict(r) for r in _require(data, "rows", "Table")],
            column_count=int(_require(data, "columnCount", "Table")),
            bbox=BoundingBox.from_dict(_require(data, "boundingBox", "Table")),
            id=str(data.get("id") or _new_id())
        )


# ============================================================================
# Lists
# ============================================================================

@dataclass(frozen=True)
class ListItem:
    """A single list item; text has its marker stripped."""
    text: str
    marker: Optional[str]
    bbox: BoundingBox
    level: int = 0
    fragments: List[TextFragment] = field(default_factory=list)
    id: str = field(default_factory=_new_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "marker": self.marker,
            "level": self.level,
            "boundingBox": self.bbox.to_dict(),
            "textFragments": [f.to_dict() for f in self.fragments]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ListItem':
        return cls(
            text=str(_require(data, "text", "List item")),
            marker=data.get("marker"),
            bbox=BoundingBox.from_dict(_require(data, "boundingBox", "List item")),
            level=int(data.get("level", 0)),
            fragments=_fragments_from(data, "List item"),
            id=str(data.get("id") or _new_id())
        )


@dataclass(frozen=True)
class DocList:
    """A detected list of contiguous, same-type items."""
    items: List[ListItem]
    type: ListType
    bbox: BoundingBox
    id: str = field(default_factory=_new_id)

    @property
    def fragments(self) -> List[TextFragment]:
        return [f for item in self.items for f in item.fragments]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "items": [i.to_dict() for i in self.items],
            "type": self.type.value,
            "boundingBox": self.bbox.to_dict()
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DocList':
        return cls(
            items=[ListItem.from_dict(i) for i in _require(data, "items", "List")],
            type=ListType(_require(data, "type", "List")),
            bbox=BoundingBox.from_dict(_require(data, "boundingBox", "List")),
            id=str(data.get("id") or _new_id())
        )


# ============================================================================
# Links
# ============================================================================

@dataclass(frozen=True)
class Link:
    """A link found inside a fragment; bbox is the whole fragment's box."""
    text: str
    url: str
    type: LinkType
    bbox: BoundingBox
    fragment: TextFragment
    id: str = field(default_factory=_new_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "url": self.url,
            "type": self.type.value,
            "boundingBox": self.bbox.to_dict(),
            "textFragment": self.fragment.to_dict()
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Link':
        return cls(
            text=str(_require(data, "text", "Link")),
            url=str(_require(data, "url", "Link")),
            type=LinkType(_require(data, "type", "Link")),
            bbox=BoundingBox.from_dict(_require(data, "boundingBox", "Link")),
            fragment=TextFragment.from_dict(_require(data, "textFragment", "Link")),
            id=str(data.get("id") or _new_id())
        )
