"""
Document assembler module for document structure reconstruction.

Provides:
- Per-page pipeline orchestration (layout, detectors, paragraphs)
- Consumed-fragment bookkeeping
- Order-preserving parallel processing of multi-page input
- Metrics calculation
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

import numpy as np

from .config import PipelineConfig, get_config
from .document import MultiPageDocument, StructuredDocument
from .geometry import union_all
from .headings import HeadingDetector
from .layout import LayoutAnalyzer
from .links import LinkDetector
from .lists import ListDetector
from .models import DocList, Heading, Paragraph, Table, TextFragment
from .tables import TableDetector

logger = logging.getLogger(__name__)

Size = Tuple[float, float]

HIGH_CONFIDENCE = 0.80
LOW_CONFIDENCE = 0.65


# ============================================================================
# Metrics
# ============================================================================

@dataclass
class DocumentMetrics:
    """Metrics about document processing."""
    global_confidence: float = 0.0
    coverage_pct: float = 0.0

    # Fragment metrics
    fragments_total: int = 0
    fragments_high_confidence: int = 0
    fragments_low_confidence: int = 0

    # Structure counts
    headings_total: int = 0
    paragraphs_total: int = 0
    tables_total: int = 0
    lists_total: int = 0
    links_total: int = 0

    # Processing stats
    pages_processed: int = 0
    processing_time_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "global_confidence": round(self.global_confidence, 3),
            "coverage_pct": round(self.coverage_pct, 3),
            "fragments": {
                "total": self.fragments_total,
                "high_confidence": self.fragments_high_confidence,
                "low_confidence": self.fragments_low_confidence
            },
            "structures": {
                "headings": self.headings_total,
                "paragraphs": self.paragraphs_total,
                "tables": self.tables_total,
                "lists": self.lists_total,
                "links": self.links_total
            },
            "pages_processed": self.pages_processed,
            "processing_time_seconds": round(self.processing_time_seconds, 2)
        }


def resolve_claims(
    headings: List[Heading],
    tables: List[Table],
    lists: List[DocList],
    minimum_list_items: int = 2
) -> Tuple[List[Heading], List[DocList]]:
    """
    Give each fragment to a single structural entity.

    Table cells win over list items, which win over headings. A list that
    loses items to a table is kept only while it still has minimum_list_items.
    """
    claimed: Set[str] = {f.id for table in tables for f in table.fragments}

    kept_lists: List[DocList] = []
    for doc_list in lists:
        items = [i for i in doc_list.items if not any(f.id in claimed for f in i.fragments)]
        if len(items) == len(doc_list.items):
            kept_lists.append(doc_list)
        elif len(items) >= minimum_list_items:
            kept_lists.append(replace(doc_list, items=items, bbox=union_all(i.bbox for i in items)))
        else:
            logger.debug(f"Dropped list {doc_list.id}: its items belong to a table")
    for doc_list in kept_lists:
        claimed.update(f.id for f in doc_list.fragments)

    kept_headings = [h for h in headings if not any(f.id in claimed for f in h.fragments)]
    if len(kept_headings) < len(headings):
        logger.debug(f"Dropped {len(headings) - len(kept_headings)} heading(s) backed by tables or lists")

    return kept_headings, kept_lists


def collect_consumed_ids(
    headings: Iterable[Heading],
    tables: Iterable[Table],
    lists: Iterable[DocList]
) -> Set[str]:
    """Ids of every fragment backing a heading, table cell or list item."""
    consumed: Set[str] = set()
    for heading in headings:
        consumed.update(f.id for f in heading.fragments)
    for table in tables:
        consumed.update(f.id for f in table.fragments)
    for doc_list in lists:
        consumed.update(f.id for f in doc_list.fragments)
    return consumed


# ============================================================================
# Document Assembler
# ============================================================================

class DocumentAssembler:
    """
    Orchestrates the structure reconstruction pipeline.

    Coordinates:
    - Layout analysis (lines, columns, height statistics)
    - Heading, table, list and link detection
    - Paragraph formation from unclaimed fragments
    - Multi-page assembly and metrics
    """

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or get_config()

        self.layout = LayoutAnalyzer.from_config(self.config.layout)
        self.heading_detector = HeadingDetector.from_config(self.config.heading)
        self.table_detector = TableDetector.from_config(self.config.table)
        self.list_detector = ListDetector.from_config(self.config.lists)
        self.link_detector = LinkDetector.from_config(self.config.link)

    def process_page(
        self,
        fragments: Sequence[TextFragment],
        size: Size = (1.0, 1.0),
        page_number: int = 1
    ) -> StructuredDocument:
        """
        Reconstruct the structure of a single page.

        Args:
            fragments: Recognized text fragments of the page, in any order
            size: Page size in source units (informational)
            page_number: 1-indexed page number, used for logging

        Returns:
            StructuredDocument for the page
        """
        start_time = time.time()
        fragments = list(fragments)
        logger.info(f"Processing page {page_number} ({len(fragments)} fragments)")

        lines = self.layout.group_into_lines(fragments)
        columns = self.layout.detect_columns(fragments)
        statistics = self.layout.calculate_height_statistics(fragments)

        headings = self.heading_detector.detect(fragments, statistics)
        tables = self.table_detector.detect(fragments, lines)
        lists = self.list_detector.detect(fragments)
        links = self.link_detector.detect(fragments)

        headings, lists = resolve_claims(
            headings, tables, lists, minimum_list_items=self.list_detector.minimum_items
        )
        consumed = collect_consumed_ids(headings, tables, lists)
        remaining = [f for f in fragments if f.id not in consumed]
        paragraphs = [
            Paragraph.from_fragments(group)
            for group in self.layout.find_vertically_adjacent_groups(remaining, columns)
        ]

        document = StructuredDocument(
            size=size,
            fragments=fragments,
            headings=headings,
            paragraphs=paragraphs,
            tables=tables,
            links=links,
            lists=lists,
            columns=columns
        )

        elapsed = time.time() - start_time
        logger.info(
            f"Page {page_number}: {len(headings)} headings, {len(paragraphs)} paragraphs, "
            f"{len(tables)} tables, {len(lists)} lists, {len(links)} links, "
            f"{len(columns)} columns in {elapsed:.3f}s"
        )
        return document

    def process_document(
        self,
        pages: Sequence[Sequence[TextFragment]],
        sizes: Optional[Sequence[Size]] = None
    ) -> MultiPageDocument:
        """
        Process a complete document.

        Pages are independent and run on a thread pool when more than one
        worker is configured; the result keeps input page order.

        Args:
            pages: Fragments of each page
            sizes: Optional page sizes, parallel to pages

        Returns:
            MultiPageDocument with one StructuredDocument per page and metrics
        """
        start_time = time.time()

        if sizes is None:
            sizes = [(1.0, 1.0)] * len(pages)
        elif len(sizes) != len(pages):
            raise ValueError(f"Got {len(sizes)} page sizes for {len(pages)} pages")

        page_numbers = range(1, len(pages) + 1)
        workers = min(self.config.workers, len(pages))

        if workers <= 1:
            results = [self.process_page(*args) for args in zip(pages, sizes, page_numbers)]
        else:
            logger.debug(f"Processing {len(pages)} pages with {workers} workers")
            with ThreadPoolExecutor(max_workers=workers) as executor:
                results = list(executor.map(self.process_page, pages, sizes, page_numbers))

        elapsed = time.time() - start_time
        metrics = self.calculate_metrics(results, elapsed)
        logger.info(f"Processed {len(results)} page(s) in {elapsed:.2f}s")

        return MultiPageDocument(pages=results, metrics=metrics.to_dict())

    def calculate_metrics(
        self,
        pages: Sequence[StructuredDocument],
        processing_time: float
    ) -> DocumentMetrics:
        """Calculate document-wide metrics."""
        metrics = DocumentMetrics()
        metrics.processing_time_seconds = processing_time
        metrics.pages_processed = len(pages)

        confidences = []
        covered_area = 0.0

        for page in pages:
            for fragment in page.fragments:
                confidences.append(fragment.confidence)
                covered_area += fragment.bbox.area

                if fragment.confidence >= HIGH_CONFIDENCE:
                    metrics.fragments_high_confidence += 1
                elif fragment.confidence < LOW_CONFIDENCE:
                    metrics.fragments_low_confidence += 1

            metrics.headings_total += len(page.headings)
            metrics.paragraphs_total += len(page.paragraphs)
            metrics.tables_total += len(page.tables)
            metrics.lists_total += len(page.lists)
            metrics.links_total += len(page.links)

        metrics.fragments_total = len(confidences)

        if confidences:
            metrics.global_confidence = float(np.mean(confidences))

        # Boxes are normalized, so each page has unit area
        if pages:
            metrics.coverage_pct = covered_area / len(pages) * 100

        return metrics
