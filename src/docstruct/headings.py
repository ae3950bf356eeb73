"""
Heading detection module.

Fragments noticeably taller than the median are headings; distinct heights
(largest first) map to heading levels 1..max_levels.
"""

import logging
from typing import List, Sequence

from .config import HeadingConfig
from .layout import HeightStatistics
from .models import Heading, TextFragment

logger = logging.getLogger(__name__)


class HeadingDetector:
    """Classify oversized fragments into heading levels."""

    def __init__(
        self,
        size_threshold: float = 1.2,
        max_levels: int = 6,
        level_tolerance: float = 0.01
    ):
        self.size_threshold = size_threshold
        self.max_levels = max_levels
        self.level_tolerance = level_tolerance

    @classmethod
    def from_config(cls, config: HeadingConfig) -> 'HeadingDetector':
        return cls(
            size_threshold=config.size_threshold,
            max_levels=config.max_levels,
            level_tolerance=config.level_tolerance
        )

    def detect(
        self,
        fragments: Sequence[TextFragment],
        statistics: HeightStatistics
    ) -> List[Heading]:
        """
        Detect headings.

        Args:
            fragments: All fragments of the page
            statistics: Height statistics over the same fragments

        Returns:
            Headings sorted top to bottom
        """
        if not fragments or statistics.mean <= 0:
            return []

        cutoff = statistics.median * self.size_threshold
        candidates = [f for f in fragments if f.bbox.height > cutoff]
        if not candidates:
            return []

        levels = self._distinct_heights(sorted((f.bbox.height for f in candidates), reverse=True))

        headings = [
            Heading(
                text=f.text,
                level=self._determine_level(f.bbox.height, levels),
                bbox=f.bbox,
                fragments=[f]
            )
            for f in candidates
        ]

        logger.debug(f"Detected {len(headings)} heading(s) over {len(levels)} level(s)")
        return sorted(headings, key=lambda h: -h.bbox.max_y)

    def _distinct_heights(self, heights: List[float]) -> List[float]:
        """Collapse near-equal heights (sorted descending) into level buckets."""
        distinct = [heights[0]]
        for height in heights[1:]:
            if abs(height - distinct[-1]) > self.level_tolerance:
                distinct.append(height)
        return distinct[:self.max_levels]

    def _determine_level(self, height: float, distinct_heights: List[float]) -> int:
        for index, bucket in enumerate(distinct_heights):
            if abs(height - bucket) < self.level_tolerance:
                return index + 1
        return len(distinct_heights)
