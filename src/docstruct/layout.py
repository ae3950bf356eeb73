"""
Layout analysis module for document structure reconstruction.

Provides:
- Line grouping (fragments sharing a vertical band)
- Multi-column detection from recurring whitespace gutters
- Fragment height statistics (input to heading detection)
- Column-aware reading order
- Paragraph grouping of vertically adjacent fragments

Coordinates are normalized with the origin at the bottom-left, so "top of
the page" means the largest max_y.
"""

import logging
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

import numpy as np

from .config import LayoutConfig
from .geometry import BoundingBox
from .models import Column, TextFragment

logger = logging.getLogger(__name__)

T = TypeVar("T")

Gap = Tuple[float, float]  # (start, end) of a horizontal whitespace gap


# ============================================================================
# Data Classes
# ============================================================================

@dataclass(frozen=True)
class HeightStatistics:
    """Statistics over fragment heights."""
    mean: float
    median: float
    std: float
    minimum: float
    maximum: float

    def is_significantly_larger(self, height: float, threshold: float = 1.5) -> bool:
        return height > self.mean + self.std * threshold


EMPTY_STATISTICS = HeightStatistics(0.0, 0.0, 0.0, 0.0, 0.0)


# ============================================================================
# Column Helpers
# ============================================================================

def column_index_for_x(columns: Sequence[Column], x: float) -> int:
    """Index of the column band containing x, else of the nearest band."""
    for column in columns:
        if column.contains_x(x):
            return column.index
    nearest = min(columns, key=lambda c: c.distance_to_x(x))
    return nearest.index


# ============================================================================
# Layout Analyzer
# ============================================================================

class LayoutAnalyzer:
    """
    Spatial analysis of text fragments.

    Stateless apart from its thresholds; every method is a pure function of
    its arguments.
    """

    def __init__(
        self,
        line_threshold: float = 0.5,
        column_gap_threshold: float = 0.03,
        minimum_column_elements: int = 3,
        gutter_tolerance: float = 0.05,
        paragraph_max_gap: float = 0.02,
        paragraph_overlap_tolerance: float = 0.01,
        paragraph_alignment_tolerance: float = 0.3
    ):
        self.line_threshold = line_threshold
        self.column_gap_threshold = column_gap_threshold
        self.minimum_column_elements = minimum_column_elements
        self.gutter_tolerance = gutter_tolerance
        self.paragraph_max_gap = paragraph_max_gap
        self.paragraph_overlap_tolerance = paragraph_overlap_tolerance
        self.paragraph_alignment_tolerance = paragraph_alignment_tolerance

    @classmethod
    def from_config(cls, config: LayoutConfig) -> 'LayoutAnalyzer':
        return cls(
            line_threshold=config.line_threshold,
            column_gap_threshold=config.column_gap_threshold,
            minimum_column_elements=config.minimum_column_elements,
            gutter_tolerance=config.gutter_tolerance,
            paragraph_max_gap=config.paragraph_max_gap,
            paragraph_overlap_tolerance=config.paragraph_overlap_tolerance,
            paragraph_alignment_tolerance=config.paragraph_alignment_tolerance
        )

    # ------------------------------------------------------------------
    # Lines
    # ------------------------------------------------------------------

    def group_into_lines(self, fragments: Sequence[TextFragment]) -> List[List[TextFragment]]:
        """
        Group fragments into lines, top to bottom, each line left to right.

        A fragment joins the open line while its vertical center stays within
        avg_height * line_threshold of the center of the fragment that opened
        the line.
        """
        if not fragments:
            return []

        ordered = sorted(fragments, key=lambda f: -f.bbox.max_y)
        avg_height = float(np.mean([f.bbox.height for f in ordered]))
        limit = avg_height * self.line_threshold

        lines: List[List[TextFragment]] = []
        current: List[TextFragment] = []
        reference_y = ordered[0].bbox.center[1]

        for fragment in ordered:
            center_y = fragment.bbox.center[1]
            if abs(center_y - reference_y) < limit:
                current.append(fragment)
            else:
                if current:
                    lines.append(sorted(current, key=lambda f: f.bbox.min_x))
                current = [fragment]
                reference_y = center_y

        if current:
            lines.append(sorted(current, key=lambda f: f.bbox.min_x))

        return lines

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------

    def detect_columns(self, fragments: Sequence[TextFragment]) -> List[Column]:
        """Detect column bands from whitespace gutters recurring across lines."""
        if len(fragments) < self.minimum_column_elements:
            return []

        lines = self.group_into_lines(fragments)
        if len(lines) < 2:
            return []

        gaps: List[Gap] = []
        for line in lines:
            for left, right in zip(line, line[1:]):
                start, end = left.bbox.max_x, right.bbox.min_x
                if end - start >= self.column_gap_threshold:
                    gaps.append((start, end))

        gutters = self._find_consistent_gutters(gaps, min_occurrences=len(lines) // 3)
        if not gutters:
            return []

        boundaries = [0.0] + [(start + end) / 2 for start, end in gutters] + [1.0]

        columns: List[Column] = []
        for left, right in zip(boundaries, boundaries[1:]):
            members = [f for f in fragments if left <= f.bbox.center[0] < right]
            if len(members) < self.minimum_column_elements:
                continue
            columns.append(Column(index=len(columns), min_x=left, max_x=right, fragments=members))

        logger.debug(f"Detected {len(gutters)} gutter(s), {len(columns)} column(s)")
        return columns

    def _find_consistent_gutters(self, gaps: List[Gap], min_occurrences: int) -> List[Gap]:
        """Cluster gaps by center and keep the clusters that recur often enough."""
        if not gaps:
            return []

        clusters: List[List[Gap]] = []
        for gap in gaps:
            gap_center = (gap[0] + gap[1]) / 2
            for cluster in clusters:
                cluster_center = float(np.mean([(s + e) / 2 for s, e in cluster]))
                if abs(gap_center - cluster_center) < self.gutter_tolerance:
                    cluster.append(gap)
                    break
            else:
                clusters.append([gap])

        required = max(min_occurrences, 2)
        gutters = [
            (float(np.mean([s for s, _ in cluster])), float(np.mean([e for _, e in cluster])))
            for cluster in clusters
            if len(cluster) >= required
        ]
        return sorted(gutters, key=lambda g: g[0])

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def calculate_height_statistics(self, fragments: Sequence[TextFragment]) -> HeightStatistics:
        if not fragments:
            return EMPTY_STATISTICS

        heights = sorted(f.bbox.height for f in fragments)
        values = np.asarray(heights, dtype=float)

        return HeightStatistics(
            mean=float(values.mean()),
            median=heights[len(heights) // 2],
            std=float(values.std()),
            minimum=heights[0],
            maximum=heights[-1]
        )

    # ------------------------------------------------------------------
    # Reading order
    # ------------------------------------------------------------------

    def _compare_single_column(self, a: BoundingBox, b: BoundingBox) -> int:
        avg_height = (a.height + b.height) / 2
        if abs(a.max_y - b.max_y) < avg_height * self.line_threshold:
            # Same line: left to right
            return (a.min_x > b.min_x) - (a.min_x < b.min_x)
        return -1 if a.max_y > b.max_y else 1

    def sort_in_reading_order(
        self,
        items: Sequence[T],
        box_of: Callable[[T], BoundingBox],
        columns: Sequence[Column]
    ) -> List[T]:
        """
        Sort anything with a box into reading order.

        With more than one column: by column (band of the box center, nearest
        band as fallback), then top to bottom. Otherwise top to bottom with
        same-line items left to right.
        """
        if len(columns) > 1:
            return sorted(
                items,
                key=lambda item: (
                    column_index_for_x(columns, box_of(item).center[0]),
                    -box_of(item).max_y
                )
            )
        return sorted(
            items,
            key=cmp_to_key(lambda p, q: self._compare_single_column(box_of(p), box_of(q)))
        )

    def get_reading_order(
        self,
        fragments: Sequence[TextFragment],
        columns: Optional[Sequence[Column]] = None
    ) -> List[TextFragment]:
        """Fragments in column-aware reading order; columns are detected when not given."""
        if columns is None:
            columns = self.detect_columns(fragments)
        return self.sort_in_reading_order(fragments, lambda f: f.bbox, columns)

    # ------------------------------------------------------------------
    # Paragraphs
    # ------------------------------------------------------------------

    def find_vertically_adjacent_groups(
        self,
        fragments: Sequence[TextFragment],
        columns: Optional[Sequence[Column]] = None,
        max_gap: Optional[float] = None
    ) -> List[List[TextFragment]]:
        """
        Group fragments into paragraph-sized runs.

        Consecutive fragments (in reading order) stay together while the gap
        below the previous fragment is in [-overlap_tolerance, max_gap) and
        both are horizontally aligned.
        """
        if not fragments:
            return []

        if max_gap is None:
            max_gap = self.paragraph_max_gap

        ordered = self.get_reading_order(fragments, columns)

        groups: List[List[TextFragment]] = []
        current = [ordered[0]]

        for fragment in ordered[1:]:
            last = current[-1]
            gap = last.bbox.min_y - fragment.bbox.max_y
            if (
                -self.paragraph_overlap_tolerance <= gap < max_gap
                and fragment.bbox.is_horizontally_aligned(
                    last.bbox, tolerance=self.paragraph_alignment_tolerance
                )
            ):
                current.append(fragment)
            else:
                groups.append(current)
                current = [fragment]

        groups.append(current)
        return groups
