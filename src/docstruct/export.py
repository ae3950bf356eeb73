"""
Export module for reconstructed documents.

Provides:
- JSON export (stable camelCase keys)
- Markdown export
- HTML export
- Plain text export
- DOCX export (using python-docx)

Every exporter accepts a StructuredDocument (one page) or a
MultiPageDocument and walks each page's ordered element stream.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from .config import JSON_SCHEMA_VERSION, ExportConfig
from .document import DocumentElement, ElementType, MultiPageDocument, StructuredDocument
from .io import EnhancedJSONEncoder, save_json
from .models import DocList, Link, ListType, Table

logger = logging.getLogger(__name__)

AnyDocument = Union[StructuredDocument, MultiPageDocument]

FORMAT_EXTENSIONS = {
    "json": ".json",
    "markdown": ".md",
    "html": ".html",
    "text": ".txt",
    "docx": ".docx",
}

ALL_FORMATS = list(FORMAT_EXTENSIONS)


def _pages_of(document: AnyDocument) -> List[StructuredDocument]:
    if isinstance(document, MultiPageDocument):
        return list(document.pages)
    return [document]


def _links_of(document: AnyDocument) -> List[Link]:
    if isinstance(document, MultiPageDocument):
        return document.all_links
    return list(document.links)


def _write_text(text: str, output_path: Union[str, Path]) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w', encoding='utf-8') as f:
        f.write(text)
    return output_path


class _TextExporter:
    """Shared export() for exporters that render to a string."""

    format_name = "text"

    def render(self, document: AnyDocument) -> str:
        raise NotImplementedError

    def export(self, document: AnyDocument, output_path: Union[str, Path]) -> Path:
        """
        Export document to a file.

        Args:
            document: StructuredDocument or MultiPageDocument
            output_path: Output file path

        Returns:
            Path to the generated file
        """
        path = _write_text(self.render(document), output_path)
        logger.info(f"Exported {self.format_name} to: {path}")
        return path


# ============================================================================
# JSON Exporter
# ============================================================================

class JSONExporter(_TextExporter):
    """Export document to pretty-printed JSON with sorted keys."""

    format_name = "JSON"

    def __init__(self, indent: Optional[int] = 2):
        self.indent = indent

    def _payload(self, document: AnyDocument) -> Dict[str, Any]:
        data = document.to_dict()
        if isinstance(document, MultiPageDocument):
            data["schemaVersion"] = JSON_SCHEMA_VERSION
        return data

    def render(self, document: AnyDocument) -> str:
        return json.dumps(
            self._payload(document),
            indent=self.indent,
            sort_keys=True,
            ensure_ascii=False,
            cls=EnhancedJSONEncoder
        )

    def export(self, document: AnyDocument, output_path: Union[str, Path]) -> Path:
        path = save_json(self._payload(document), output_path, indent=self.indent, sort_keys=True)
        logger.info(f"Exported {self.format_name} to: {path}")
        return path


# ============================================================================
# Markdown Exporter
# ============================================================================

class MarkdownExporter(_TextExporter):
    """Export document to Markdown format."""

    format_name = "Markdown"

    def __init__(self, include_page_breaks: bool = True, include_links: bool = True):
        self.include_page_breaks = include_page_breaks
        self.include_links = include_links

    def render(self, document: AnyDocument) -> str:
        lines: List[str] = []
        pages = _pages_of(document)

        for number, page in enumerate(pages, 1):
            if self.include_page_breaks and len(pages) > 1:
                lines.extend(["", "---", f"*Page {number}*", ""])

            for element in page.elements:
                lines.extend(self._element_to_markdown(element))

        links = _links_of(document)
        if self.include_links and links:
            lines.extend(["---", "", "**Links:**"])
            lines.extend(f"- [{link.text}]({link.url})" for link in links)

        return "\n".join(lines)

    def _element_to_markdown(self, element: DocumentElement) -> List[str]:
        value = element.value

        if element.kind == ElementType.HEADING:
            return [f"{'#' * value.level} {value.text}", ""]

        if element.kind == ElementType.PARAGRAPH:
            return [value.text, ""]

        if element.kind == ElementType.TABLE:
            return [self._table_to_markdown(value), ""]

        if element.kind == ElementType.LIST:
            return [self._list_to_markdown(value), ""]

        return [value.text]

    def _table_to_markdown(self, table: Table) -> str:
        if not table.rows:
            return ""

        lines = []
        for index, row in enumerate(table.rows):
            cells = [cell.text.replace("|", "\\|") for cell in row.cells]
            lines.append("| " + " | ".join(cells) + " |")

            # Header separator after the first row
            if index == 0:
                lines.append("| " + " | ".join("---" for _ in row.cells) + " |")

        return "\n".join(lines)

    def _list_to_markdown(self, doc_list: DocList) -> str:
        lines = []
        for index, item in enumerate(doc_list.items):
            indent = "  " * item.level
            if doc_list.type == ListType.ORDERED:
                marker = f"{index + 1}."
            elif doc_list.type == ListType.CHECKBOX:
                marker = "- [ ]"
            else:
                marker = "-"
            lines.append(f"{indent}{marker} {item.text}")
        return "\n".join(lines)


# ============================================================================
# HTML Exporter
# ============================================================================

HTML_HEADER = """<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <style>
        body { font-family: -apple-system, BlinkMacSystemFont, sans-serif; max-width: 800px; margin: 0 auto; padding: 20px; }
        table { border-collapse: collapse; width: 100%; margin: 1em 0; }
        th, td { border: 1px solid #ddd; padding: 8px; text-align: left; }
        th { background-color: #f5f5f5; }
        ul, ol { margin: 1em 0; }
        a { color: #007aff; }
    </style>
</head>
<body>
"""

HTML_FOOTER = """
</body>
</html>
"""


def escape_html(text: str) -> str:
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


class HTMLExporter(_TextExporter):
    """Export document to HTML, optionally as a full styled page."""

    format_name = "HTML"

    def __init__(self, include_styles: bool = True, include_page_breaks: bool = True):
        self.include_styles = include_styles
        self.include_page_breaks = include_page_breaks

    def render(self, document: AnyDocument) -> str:
        html = HTML_HEADER + "\n" if self.include_styles else ""
        pages = _pages_of(document)

        for number, page in enumerate(pages, 1):
            if self.include_page_breaks and number > 1:
                html += f"<hr>\n<!-- Page {number} -->\n"
            for element in page.elements:
                html += self._element_to_html(element)

        if self.include_styles:
            html += HTML_FOOTER

        return html

    def _element_to_html(self, element: DocumentElement) -> str:
        value = element.value

        if element.kind == ElementType.HEADING:
            return f"<h{value.level}>{escape_html(value.text)}</h{value.level}>\n"

        if element.kind == ElementType.TABLE:
            return self._table_to_html(value)

        if element.kind == ElementType.LIST:
            return self._list_to_html(value)

        return f"<p>{escape_html(value.text)}</p>\n"

    def _table_to_html(self, table: Table) -> str:
        html = "<table>\n"
        for row in table.rows:
            tag = "th" if row.is_header else "td"
            html += "  <tr>\n"
            for cell in row.cells:
                html += f"    <{tag}>{escape_html(cell.text)}</{tag}>\n"
            html += "  </tr>\n"
        html += "</table>\n"
        return html

    def _list_to_html(self, doc_list: DocList) -> str:
        tag = "ol" if doc_list.type == ListType.ORDERED else "ul"
        html = f"<{tag}>\n"
        for item in doc_list.items:
            html += f"  <li>{escape_html(item.text)}</li>\n"
        html += f"</{tag}>\n"
        return html


# ============================================================================
# Plain Text Exporter
# ============================================================================

class PlainTextExporter(_TextExporter):
    """Export document to plain text."""

    format_name = "plain text"

    def render(self, document: AnyDocument) -> str:
        pages = [self._render_page(page) for page in _pages_of(document)]
        return "\n\f\n".join(pages)

    def _render_page(self, page: StructuredDocument) -> str:
        lines: List[str] = []

        for element in page.elements:
            value = element.value

            if element.kind == ElementType.HEADING:
                lines.extend([value.text.upper(), "=" * len(value.text), ""])

            elif element.kind == ElementType.PARAGRAPH:
                lines.extend([value.text, ""])

            elif element.kind == ElementType.TABLE:
                lines.extend("\t".join(cell.text for cell in row.cells) for row in value.rows)
                lines.append("")

            elif element.kind == ElementType.LIST:
                lines.extend(f"  • {item.text}" for item in value.items)
                lines.append("")

            else:
                lines.append(value.text)

        return "\n".join(lines)


# ============================================================================
# DOCX Exporter
# ============================================================================

class DocxExporter:
    """Export document to DOCX format using python-docx."""

    def __init__(
        self,
        template_path: Optional[str] = None,
        include_page_breaks: bool = True,
        include_links: bool = True
    ):
        self.template_path = template_path
        self.include_page_breaks = include_page_breaks
        self.include_links = include_links

    def export(self, document: AnyDocument, output_path: Union[str, Path]) -> Path:
        """
        Export document to DOCX file.

        Args:
            document: StructuredDocument or MultiPageDocument
            output_path: Output file path

        Returns:
            Path to the generated DOCX file
        """
        try:
            from docx import Document as DocxDocument
        except ImportError:
            raise ImportError(
                "python-docx is required for DOCX export. "
                "Install with: pip install python-docx"
            )

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        if self.template_path and Path(self.template_path).exists():
            doc = DocxDocument(self.template_path)
        else:
            doc = DocxDocument()

        pages = _pages_of(document)
        for number, page in enumerate(pages, 1):
            if self.include_page_breaks and number > 1:
                doc.add_page_break()
            for element in page.elements:
                self._add_element(doc, element)

        links = _links_of(document)
        if self.include_links and links:
            doc.add_heading("Links", level=2)
            for link in links:
                doc.add_paragraph(f"{link.text} ({link.url})", style='List Bullet')

        doc.save(str(output_path))
        logger.info(f"Exported DOCX to: {output_path}")

        return output_path

    def _add_element(self, doc: Any, element: DocumentElement):
        value = element.value

        if element.kind == ElementType.HEADING:
            doc.add_heading(value.text, level=min(value.level, 9))

        elif element.kind == ElementType.TABLE:
            self._add_table(doc, value)

        elif element.kind == ElementType.LIST:
            self._add_list(doc, value)

        else:
            doc.add_paragraph(value.text)

    def _add_table(self, doc: Any, table: Table):
        """Add a table; short rows leave their trailing cells empty."""
        if not table.rows or table.column_count == 0:
            return

        docx_table = doc.add_table(rows=table.row_count, cols=table.column_count)
        docx_table.style = 'Table Grid'

        for i, row in enumerate(table.rows):
            docx_row = docx_table.rows[i]
            for cell in row.cells:
                if cell.column < len(docx_row.cells):
                    docx_cell = docx_row.cells[cell.column]
                    docx_cell.text = cell.text
                    if row.is_header:
                        for run in docx_cell.paragraphs[0].runs:
                            run.bold = True

    def _add_list(self, doc: Any, doc_list: DocList):
        style = 'List Number' if doc_list.type == ListType.ORDERED else 'List Bullet'
        for item in doc_list.items:
            text = f"☐ {item.text}" if doc_list.type == ListType.CHECKBOX else item.text
            doc.add_paragraph(text, style=style)


# ============================================================================
# Multi-format Export
# ============================================================================

class DocumentExporter:
    """Convenience class for exporting to multiple formats."""

    def __init__(
        self,
        output_dir: Union[str, Path],
        base_name: str = "document",
        config: Optional[ExportConfig] = None
    ):
        self.output_dir = Path(output_dir)
        self.base_name = base_name
        config = config or ExportConfig()

        self.exporters = {
            "json": JSONExporter(indent=config.json_indent),
            "markdown": MarkdownExporter(
                include_page_breaks=config.include_page_breaks,
                include_links=config.include_links
            ),
            "html": HTMLExporter(
                include_styles=config.html_include_styles,
                include_page_breaks=config.include_page_breaks
            ),
            "text": PlainTextExporter(),
            "docx": DocxExporter(
                template_path=config.docx_template,
                include_page_breaks=config.include_page_breaks,
                include_links=config.include_links
            ),
        }

    def export(
        self,
        document: AnyDocument,
        formats: Optional[Sequence[str]] = None
    ) -> Dict[str, Path]:
        """
        Export document to multiple formats.

        Args:
            document: StructuredDocument or MultiPageDocument
            formats: Any of 'json', 'markdown', 'html', 'text', 'docx', or 'all'

        Returns:
            Dictionary mapping format to output path

        Raises:
            ValueError: If a format is unknown
        """
        if formats is None:
            formats = ["json", "markdown"]

        if "all" in formats:
            formats = ALL_FORMATS

        unknown = [f for f in formats if f not in self.exporters]
        if unknown:
            raise ValueError(f"Unknown export format(s): {', '.join(unknown)}")

        self.output_dir.mkdir(parents=True, exist_ok=True)

        results = {}
        for fmt in formats:
            path = self.output_dir / f"{self.base_name}{FORMAT_EXTENSIONS[fmt]}"
            results[fmt] = self.exporters[fmt].export(document, path)

        return results
