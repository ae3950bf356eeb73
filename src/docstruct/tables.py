"""
Table detection module for document structure reconstruction.

Finds runs of consecutive lines that share a fragment count and left-edge
alignment, and turns each run into a row/cell grid.

Cells are indexed by their position within the line, not by a global column
grid: a row with a missing cell shifts the cells to its right one column
left.
"""

import logging
from typing import List, Optional, Sequence

import numpy as np

from .config import TableConfig
from .geometry import union_all
from .models import Table, TableCell, TableRow, TextFragment

logger = logging.getLogger(__name__)

Line = List[TextFragment]


class TableDetector:
    """Detect tables as grid-like patterns of aligned lines."""

    def __init__(
        self,
        minimum_rows: int = 2,
        minimum_columns: int = 2,
        alignment_tolerance: float = 0.02,
        header_height_ratio: float = 1.1
    ):
        self.minimum_rows = minimum_rows
        self.minimum_columns = minimum_columns
        self.alignment_tolerance = alignment_tolerance
        self.header_height_ratio = header_height_ratio

    @classmethod
    def from_config(cls, config: TableConfig) -> 'TableDetector':
        return cls(
            minimum_rows=config.minimum_rows,
            minimum_columns=config.minimum_columns,
            alignment_tolerance=config.alignment_tolerance,
            header_height_ratio=config.header_height_ratio
        )

    def detect(
        self,
        fragments: Sequence[TextFragment],
        lines: Sequence[Line]
    ) -> List[Table]:
        """
        Detect tables.

        Args:
            fragments: All fragments of the page
            lines: The same fragments grouped into lines, top to bottom

        Returns:
            Tables in top-to-bottom order
        """
        if len(lines) < self.minimum_rows:
            return []

        tables = [self._build_table(region) for region in self._find_table_regions(lines)]
        tables = [t for t in tables if t is not None]

        logger.debug(f"Detected {len(tables)} table(s) from {len(lines)} line(s)")
        return tables

    def _find_table_regions(self, lines: Sequence[Line]) -> List[List[Line]]:
        regions: List[List[Line]] = []
        current: List[Line] = []
        expected_count: Optional[int] = None

        for line in lines:
            if len(line) < self.minimum_columns:
                if len(current) >= self.minimum_rows:
                    regions.append(current)
                current = []
                expected_count = None
                continue

            if expected_count is None:
                current = [line]
                expected_count = len(line)
            elif abs(len(line) - expected_count) <= 1 and self._has_aligned_columns(current[-1], line):
                current.append(line)
            else:
                if len(current) >= self.minimum_rows:
                    regions.append(current)
                current = [line]
                expected_count = len(line)

        if len(current) >= self.minimum_rows:
            regions.append(current)

        return regions

    def _has_aligned_columns(self, previous: Line, line: Line) -> bool:
        """True when over half of the positionally paired fragments share a left edge."""
        shared = min(len(previous), len(line))
        if shared == 0:
            return False

        aligned = sum(
            1 for a, b in zip(previous, line)
            if abs(a.bbox.min_x - b.bbox.min_x) < self.alignment_tolerance
        )
        return aligned / shared > 0.5

    def _build_table(self, region: List[Line]) -> Optional[Table]:
        if not region:
            return None

        column_count = max(len(line) for line in region)

        rows = []
        for row_index, line in enumerate(region):
            cells = [
                TableCell(
                    text=fragment.text,
                    row=row_index,
                    column=column_index,
                    bbox=fragment.bbox,
                    fragments=[fragment]
                )
                for column_index, fragment in enumerate(line)
            ]
            rows.append(TableRow(
                cells=cells,
                bbox=union_all(f.bbox for f in line),
                is_header=row_index == 0 and self._looks_like_header(region)
            ))

        return Table(
            rows=rows,
            column_count=column_count,
            bbox=union_all(r.bbox for r in rows)
        )

    def _looks_like_header(self, region: List[Line]) -> bool:
        if len(region) < 2:
            return False

        first_height = float(np.mean([f.bbox.height for f in region[0]]))
        other_heights = [f.bbox.height for line in region[1:] for f in line]
        if not other_heights:
            return False

        return first_height > float(np.mean(other_heights)) * self.header_height_ratio
