"""
List detection module.

Recognizes leading list markers and clusters contiguous items of the same
marker family into lists:
- bullets: a fixed set of bullet characters
- ordered: 1.  2)  3]  (a)  b.  iv)
- checkbox: [ ]  [x]  ☐  ☑  ☒

Nesting is not inferred; every item has level 0.
"""

import logging
import re
from typing import List, Optional, Sequence, Tuple

from .config import ListConfig
from .geometry import union_all
from .models import DocList, ListItem, ListType, TextFragment

logger = logging.getLogger(__name__)

BULLET_MARKERS = frozenset("•◦▪▸▹►‣⁃-–—*")
NUMBERED_PATTERN = re.compile(r"^(\d+[.)\]]|\([a-z]\)|[a-z][.)]|[ivxIVX]+[.)])\s+")
CHECKBOX_PATTERN = re.compile(r"^(\[[ x✓✔]\]|☐|☑|☒)\s+")


def parse_list_marker(text: str) -> Optional[Tuple[str, ListType, str]]:
    """
    Split a leading list marker off a fragment's text.

    Returns:
        (marker, list type, remaining text) or None when there is no marker
    """
    trimmed = text.strip()
    if not trimmed:
        return None

    if trimmed[0] in BULLET_MARKERS:
        return trimmed[0], ListType.UNORDERED, trimmed[1:].strip()

    for pattern, list_type in ((NUMBERED_PATTERN, ListType.ORDERED), (CHECKBOX_PATTERN, ListType.CHECKBOX)):
        match = pattern.match(trimmed)
        if match:
            return match.group(1), list_type, trimmed[match.end():]

    return None


class ListDetector:
    """Detect bulleted, numbered and checkbox lists."""

    def __init__(self, minimum_items: int = 2):
        self.minimum_items = minimum_items

    @classmethod
    def from_config(cls, config: ListConfig) -> 'ListDetector':
        return cls(minimum_items=config.minimum_items)

    def detect(self, fragments: Sequence[TextFragment]) -> List[DocList]:
        """
        Detect lists, scanning fragments top to bottom.

        A change of marker type closes the open list and starts a new one; a
        fragment without a marker closes the open list. Lists shorter than
        minimum_items are dropped.
        """
        lists: List[DocList] = []
        items: List[ListItem] = []
        current_type: Optional[ListType] = None

        def flush():
            nonlocal items, current_type
            if current_type is not None and len(items) >= self.minimum_items:
                lists.append(DocList(
                    items=items,
                    type=current_type,
                    bbox=union_all(i.bbox for i in items)
                ))
            items = []
            current_type = None

        for fragment in sorted(fragments, key=lambda f: -f.bbox.max_y):
            parsed = parse_list_marker(fragment.text)
            if parsed is None:
                flush()
                continue

            marker, list_type, text = parsed
            if current_type is not None and list_type != current_type:
                flush()
            current_type = list_type

            items.append(ListItem(
                text=text,
                marker=marker,
                bbox=fragment.bbox,
                level=0,
                fragments=[fragment]
            ))

        flush()

        logger.debug(f"Detected {len(lists)} list(s)")
        return lists
