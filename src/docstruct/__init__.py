"""
Document Structure Reconstruction
=================================

Rebuilds a document's logical structure from the positioned text fragments
produced by a text-recognition engine.

Main components:
- Layout analysis (lines, columns, height statistics, reading order)
- Heading, table, list and link detection
- Paragraph formation and document assembly
- Multi-format export (JSON, Markdown, HTML, plain text, DOCX)
"""

__version__ = "1.0.0"
__author__ = "Document Reconstruction Team"

from .geometry import BoundingBox
from .models import (
    Column, DocList, Heading, Link, LinkType, ListItem, ListType, Paragraph,
    Table, TableCell, TableRow, TextFragment
)
from .document import DocumentElement, ElementType, MultiPageDocument, StructuredDocument
from .assembler import DocumentAssembler, DocumentMetrics
from .config import PipelineConfig, get_config
