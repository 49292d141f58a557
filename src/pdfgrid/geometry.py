"""Geometry primitives in engine coordinates.

Engine coordinates have their origin at the top-left corner of a page's
client area and grow downward, in points.
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle."""
    x: float
    y: float
    width: float
    height: float

    @property
    def left(self) -> float:
        return self.x

    @property
    def top(self) -> float:
        return self.y

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def size(self) -> Size:
        return Size(self.width, self.height)

    def with_height(self, height: float) -> "Rect":
        return Rect(self.x, self.y, self.width, height)

    def with_width(self, width: float) -> "Rect":
        return Rect(self.x, self.y, width, self.height)

    def inset(self, left: float, top: float, right: float, bottom: float) -> "Rect":
        """Shrink the rectangle by the given edge amounts."""
        return Rect(
            self.x + left,
            self.y + top,
            self.width - (left + right),
            self.height - (top + bottom),
        )

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Get the rectangle as (x0, top, x1, bottom)."""
        return (self.x, self.y, self.right, self.bottom)
