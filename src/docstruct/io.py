"""
I/O utilities for the document structure pipeline.

Handles:
- Loading recognized text fragments from JSON files and folders
- JSON serialization
- Directory management
- Input type detection
"""

import json
import logging
from dataclasses import asdict
from enum import Enum
from pathlib import Path
from typing import Any, List, NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np

from .models import TextFragment

logger = logging.getLogger(__name__)

DEFAULT_SIZE = (1.0, 1.0)


class PageInput(NamedTuple):
    """Fragments of one page and the page size."""
    fragments: List[TextFragment]
    size: Tuple[float, float] = DEFAULT_SIZE


# ============================================================================
# JSON Serialization
# ============================================================================

class EnhancedJSONEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy values, model objects and paths."""

    def default(self, obj):
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return float(obj)
        if hasattr(obj, 'to_dict'):
            return obj.to_dict()
        if hasattr(obj, '__dataclass_fields__'):
            return asdict(obj)
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, Path):
            return str(obj)
        return super().default(obj)


def save_json(
    data: Any,
    output_path: Union[str, Path],
    indent: int = 2,
    ensure_ascii: bool = False,
    sort_keys: bool = False
) -> Path:
    """
    Save data to a JSON file.

    Args:
        data: Data to serialize (dict, list, model object, etc.)
        output_path: Path to save the JSON file
        indent: Indentation level for pretty printing
        ensure_ascii: If True, escape non-ASCII characters
        sort_keys: If True, write object keys in sorted order

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(
            data, f,
            indent=indent,
            ensure_ascii=ensure_ascii,
            sort_keys=sort_keys,
            cls=EnhancedJSONEncoder
        )

    logger.debug(f"Saved JSON: {output_path}")
    return output_path


def load_json(json_path: Union[str, Path]) -> Any:
    """
    Load data from a JSON file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is not valid JSON
    """
    json_path = Path(json_path)
    if not json_path.exists():
        raise FileNotFoundError(f"JSON file not found: {json_path}")

    with open(json_path, 'r', encoding='utf-8') as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {json_path}: {e}")


# ============================================================================
# Fragment Loading
# ============================================================================

def _parse_size(value: Any, source: Path) -> Tuple[float, float]:
    if value is None:
        return DEFAULT_SIZE
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise ValueError(f"Page size in {source} must be [width, height], got {value!r}")
    return (float(value[0]), float(value[1]))


def _parse_page(data: Any, source: Path) -> PageInput:
    """A page is either a list of fragment records or {fragments, size}."""
    if isinstance(data, list):
        return PageInput([TextFragment.from_dict(f) for f in data])

    if isinstance(data, dict) and "fragments" in data:
        return PageInput(
            [TextFragment.from_dict(f) for f in data["fragments"]],
            _parse_size(data.get("size"), source)
        )

    raise ValueError(f"Unrecognized page layout in {source}: expected a list or an object with 'fragments'")


def load_pages(input_path: Union[str, Path]) -> List[PageInput]:
    """
    Load recognized text fragments, one PageInput per page.

    Accepted layouts:
    - a JSON list of fragment records (one page)
    - a JSON object {"fragments": [...], "size": [w, h]} (one page)
    - a JSON object {"pages": [<page>, ...]}
    - a folder of such JSON files, one page per file, sorted by name

    Raises:
        FileNotFoundError: If the input does not exist
        ValueError: If a file does not match any accepted layout
    """
    input_path = Path(input_path)
    if not input_path.exists():
        raise FileNotFoundError(f"Input not found: {input_path}")

    if input_path.is_dir():
        files = sorted(f for f in input_path.iterdir() if f.suffix.lower() == '.json')
        logger.info(f"Found {len(files)} fragment files in {input_path}")
        pages = [_parse_page(load_json(f), f) for f in files]
    else:
        data = load_json(input_path)
        if isinstance(data, dict) and "pages" in data:
            pages = [_parse_page(page, input_path) for page in data["pages"]]
        else:
            pages = [_parse_page(data, input_path)]

    logger.debug(f"Loaded {len(pages)} page(s), {sum(len(p.fragments) for p in pages)} fragments")
    return pages


def load_fragments(input_path: Union[str, Path]) -> List[TextFragment]:
    """Load the fragments of a single-page input; raises ValueError for multi-page input."""
    pages = load_pages(input_path)
    if len(pages) != 1:
        raise ValueError(f"Expected a single page in {input_path}, found {len(pages)}")
    return pages[0].fragments


def select_pages(pages: Sequence[Any], page_range: Optional[str]) -> List[Any]:
    """
    Select pages by a 1-indexed range string such as "1-3,5".

    Raises:
        ValueError: If the range is malformed or out of range
    """
    if not page_range:
        return list(pages)

    selected = []
    for part in page_range.split(','):
        part = part.strip()
        try:
            if '-' in part:
                first, last = (int(p) for p in part.split('-', 1))
            else:
                first = last = int(part)
        except ValueError:
            raise ValueError(f"Invalid page range: {part!r}")

        if first < 1 or last > len(pages) or first > last:
            raise ValueError(f"Page range {part!r} is outside 1-{len(pages)}")
        selected.extend(range(first - 1, last))

    return [pages[i] for i in selected]


# ============================================================================
# Directory Management
# ============================================================================

def ensure_dir(path: Union[str, Path]) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


# ============================================================================
# Input Type Detection
# ============================================================================

def detect_input_type(input_path: Union[str, Path]) -> str:
    """
    Detect the type of input file or directory.

    Returns:
        One of: 'fragments', 'fragment_folder', 'document', 'unknown'
    """
    input_path = Path(input_path)

    if input_path.is_dir():
        has_json = any(f.suffix.lower() == '.json' for f in input_path.iterdir())
        return 'fragment_folder' if has_json else 'unknown'

    if not input_path.exists() or input_path.suffix.lower() != '.json':
        return 'unknown'

    try:
        data = load_json(input_path)
    except ValueError:
        return 'unknown'

    if isinstance(data, dict) and "pages" in data and all(
        isinstance(p, dict) and "textFragments" in p for p in data["pages"]
    ):
        return 'document'
    return 'fragments'
