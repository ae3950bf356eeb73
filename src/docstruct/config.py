"""
Configuration and constants for the document structure pipeline.

This module provides:
- Detector thresholds (layout, headings, tables, lists, links)
- Export settings
- Pipeline settings with environment overrides
"""

import os
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)


# ============================================================================
# Detector Configuration
# ============================================================================

@dataclass
class LayoutConfig:
    """Layout analysis configuration."""
    # Same-line threshold, as a fraction of the average fragment height
    line_threshold: float = 0.5
    # Minimum gutter width, as a fraction of the page width
    column_gap_threshold: float = 0.03
    # Gap centers closer than this belong to the same gutter
    gutter_tolerance: float = 0.05
    minimum_column_elements: int = 3
    # Paragraph grouping
    paragraph_max_gap: float = 0.02
    paragraph_overlap_tolerance: float = 0.01
    paragraph_alignment_tolerance: float = 0.3


@dataclass
class HeadingConfig:
    """Heading detection configuration."""
    size_threshold: float = 1.2
    max_levels: int = 6
    # Heights within this distance share a heading level
    level_tolerance: float = 0.01


@dataclass
class TableConfig:
    """Table detection configuration."""
    minimum_rows: int = 2
    minimum_columns: int = 2
    alignment_tolerance: float = 0.02
    # First row is a header when its mean height exceeds the rest by this ratio
    header_height_ratio: float = 1.1


@dataclass
class ListConfig:
    """List detection configuration."""
    minimum_items: int = 2


@dataclass
class LinkConfig:
    """Link detection configuration."""
    # Extra (type, regex) pairs appended after the built-in patterns
    extra_patterns: List[Tuple[str, str]] = field(default_factory=list)


@dataclass
class ExportConfig:
    """Export configuration."""
    include_page_breaks: bool = True
    include_links: bool = True
    html_include_styles: bool = True
    json_indent: int = 2
    docx_template: Optional[str] = None


@dataclass
class PipelineConfig:
    """Main pipeline configuration."""
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    heading: HeadingConfig = field(default_factory=HeadingConfig)
    table: TableConfig = field(default_factory=TableConfig)
    lists: ListConfig = field(default_factory=ListConfig)
    link: LinkConfig = field(default_factory=LinkConfig)
    export: ExportConfig = field(default_factory=ExportConfig)

    # Global settings
    workers: int = 4  # pages processed in parallel; <= 1 runs sequentially
    debug_mode: bool = False


# ============================================================================
# Default Configuration Instance
# ============================================================================

def get_config() -> PipelineConfig:
    """Get the default pipeline configuration with environment overrides."""
    config = PipelineConfig()

    workers = os.environ.get("DOCSTRUCT_WORKERS")
    if workers:
        try:
            config.workers = int(workers)
        except ValueError:
            logger.warning(f"Ignoring invalid DOCSTRUCT_WORKERS value: {workers!r}")

    if os.environ.get("DOCSTRUCT_DEBUG", "").lower() == "true":
        config.debug_mode = True

    return config


# ============================================================================
# JSON Schema Version
# ============================================================================

JSON_SCHEMA_VERSION = "1.0"
