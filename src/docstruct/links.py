"""
Link detection module.

Finds URLs, bare www. addresses, emails, phone numbers and file paths inside
fragment text. Patterns are independent: one fragment may produce several
links, including overlapping ones of different types.

Geometry is fragment-granular: a link carries the box of the whole fragment
it was found in, not of the matched substring.
"""

import logging
import re
from typing import List, Optional, Pattern, Sequence, Tuple

from .config import LinkConfig
from .models import Link, LinkType, TextFragment

logger = logging.getLogger(__name__)

_URL_CHARS = r"""[^\s<>"{}|\\^`\[\]]+"""

DEFAULT_PATTERNS: List[Tuple[LinkType, str]] = [
    (LinkType.URL, r"https?://" + _URL_CHARS),
    (LinkType.URL, r"www\." + _URL_CHARS),
    (LinkType.EMAIL, r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}"),
    (LinkType.PHONE, r"(\+\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}"),
    # Only at the start of a whitespace-delimited token, so URL paths don't match
    (LinkType.FILE, r"(?<!\S)(?:file://|/)" + _URL_CHARS),
]


def normalize_url(text: str, link_type: LinkType) -> str:
    """Canonical form of a matched link."""
    if link_type == LinkType.URL:
        if text.lower().startswith("www."):
            return f"https://{text}"
        return text
    if link_type == LinkType.EMAIL:
        return f"mailto:{text}"
    if link_type == LinkType.PHONE:
        return "tel:" + "".join(ch for ch in text if ch.isdigit())
    return text


class LinkDetector:
    """Detect links with an ordered set of case-insensitive patterns."""

    def __init__(self, extra_patterns: Optional[Sequence[Tuple[str, str]]] = None):
        self._patterns: List[Tuple[LinkType, Pattern]] = [
            (link_type, re.compile(pattern, re.IGNORECASE))
            for link_type, pattern in DEFAULT_PATTERNS
        ]
        for type_name, pattern in extra_patterns or []:
            compiled = self._compile_extra(type_name, pattern)
            if compiled is not None:
                self._patterns.append(compiled)

    @classmethod
    def from_config(cls, config: LinkConfig) -> 'LinkDetector':
        return cls(extra_patterns=config.extra_patterns)

    @property
    def pattern_count(self) -> int:
        return len(self._patterns)

    def _compile_extra(self, type_name: str, pattern: str) -> Optional[Tuple[LinkType, Pattern]]:
        try:
            link_type = LinkType(type_name)
        except ValueError:
            logger.warning(f"Skipping link pattern with unknown type {type_name!r}")
            return None
        try:
            return link_type, re.compile(pattern, re.IGNORECASE)
        except re.error as e:
            logger.warning(f"Skipping invalid {type_name} link pattern {pattern!r}: {e}")
            return None

    def detect(self, fragments: Sequence[TextFragment]) -> List[Link]:
        """Detect links in every fragment, in fragment order then pattern order."""
        links: List[Link] = []
        for fragment in fragments:
            links.extend(self._detect_in_fragment(fragment))

        logger.debug(f"Detected {len(links)} link(s)")
        return links

    def _detect_in_fragment(self, fragment: TextFragment) -> List[Link]:
        links = []
        for link_type, pattern in self._patterns:
            for match in pattern.finditer(fragment.text):
                matched = match.group(0)
                links.append(Link(
                    text=matched,
                    url=normalize_url(matched, link_type),
                    type=link_type,
                    bbox=fragment.bbox,
                    fragment=fragment
                ))
        return links
