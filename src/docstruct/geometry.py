"""
Geometry primitives for document structure reconstruction.

Provides:
- Normalized bounding boxes (unit square, origin bottom-left, y up)
- Union, intersection and distance operations
- Horizontal/vertical alignment checks
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Tuple


@dataclass(frozen=True)
class BoundingBox:
    """Normalized bounding box (0-1) with its origin at the bottom-left."""
    x: float
    y: float
    width: float
    height: float

    @property
    def min_x(self) -> float:
        return self.x

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def min_y(self) -> float:
        return self.y

    @property
    def max_y(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    def to_tuple(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.width, self.height)

    @classmethod
    def from_corners(cls, x1: float, y1: float, x2: float, y2: float) -> 'BoundingBox':
        return cls(x1, y1, x2 - x1, y2 - y1)

    def intersects(self, other: 'BoundingBox') -> bool:
        return not (
            self.max_x < other.min_x or self.min_x > other.max_x or
            self.max_y < other.min_y or self.min_y > other.max_y
        )

    def union(self, other: 'BoundingBox') -> 'BoundingBox':
        """Smallest box containing both boxes."""
        return BoundingBox.from_corners(
            min(self.min_x, other.min_x),
            min(self.min_y, other.min_y),
            max(self.max_x, other.max_x),
            max(self.max_y, other.max_y),
        )

    def vertical_distance(self, other: 'BoundingBox') -> float:
        """Gap between the nearest horizontal edges, 0 when the y ranges overlap."""
        if self.max_y < other.min_y:
            return other.min_y - self.max_y
        if other.max_y < self.min_y:
            return self.min_y - other.max_y
        return 0.0

    def horizontal_distance(self, other: 'BoundingBox') -> float:
        """Gap between the nearest vertical edges, 0 when the x ranges overlap."""
        if self.max_x < other.min_x:
            return other.min_x - self.max_x
        if other.max_x < self.min_x:
            return self.min_x - other.max_x
        return 0.0

    def is_horizontally_aligned(self, other: 'BoundingBox', tolerance: float = 0.01) -> bool:
        """True when the x ranges overlap by more than (1 - tolerance) of the narrower box."""
        overlap = min(self.max_x, other.max_x) - max(self.min_x, other.min_x)
        return overlap > min(self.width, other.width) * (1 - tolerance)

    def is_vertically_aligned(self, other: 'BoundingBox', tolerance: float = 0.01) -> bool:
        """True when the y ranges overlap by more than (1 - tolerance) of the shorter box."""
        overlap = min(self.max_y, other.max_y) - max(self.min_y, other.min_y)
        return overlap > min(self.height, other.height) * (1 - tolerance)

    def to_dict(self) -> Dict[str, float]:
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BoundingBox':
        try:
            return cls(
                float(data["x"]),
                float(data["y"]),
                float(data["width"]),
                float(data["height"])
            )
        except KeyError as e:
            raise ValueError(f"Bounding box is missing key: {e}")


ZERO_BOX = BoundingBox(0.0, 0.0, 0.0, 0.0)


def union_all(boxes: Iterable[BoundingBox]) -> BoundingBox:
    """Union of all boxes; the zero box when there are none."""
    result = None
    for box in boxes:
        result = box if result is None else result.union(box)
    return result if result is not None else ZERO_BOX
