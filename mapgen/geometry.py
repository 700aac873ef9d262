# mapgen/geometry.py
"""Integer points and the neighbourhood tables used on map lattices."""

from typing import NamedTuple, Optional, Tuple


def sign(value: int) -> int:
    """Return -1, 0 or 1 according to the sign of ``value``."""
    return (value > 0) - (value < 0)


def _clamp_unit(value: int) -> int:
    if value < -1:
        return -1
    if value > 1:
        return 1
    return value


class Point(NamedTuple):
    """A lattice coordinate. ``x`` is the column, ``y`` the row."""
    x: int
    y: int

    def add(self, other: "Point") -> "Point":
        return Point(self.x + other.x, self.y + other.y)

    def translate(self, dx: int, dy: int) -> "Point":
        return Point(self.x + dx, self.y + dy)

    def subtract(self, other: "Point") -> "Point":
        return Point(self.x - other.x, self.y - other.y)

    def abs(self) -> "Point":
        return Point(abs(self.x), abs(self.y))

    def wrap(self) -> "Point":
        """Clamp each component into {-1, 0, 1}."""
        return Point(_clamp_unit(self.x), _clamp_unit(self.y))

    def valid(self, minx: int, maxx: int, miny: int, maxy: int) -> bool:
        """True if ``minx <= x < maxx`` and ``miny <= y < maxy``."""
        return minx <= self.x < maxx and miny <= self.y < maxy

    def __str__(self) -> str:
        return f"[{self.x},{self.y}]"


class MoorePixel(NamedTuple):
    """A boundary cell and the empty cell visited just before entering it."""
    point: Point
    backtrack: Point


# Clockwise, starting from the north-west corner.
MOORE_HOOD: Tuple[Point, ...] = (
    Point(-1, -1), Point(0, -1), Point(1, -1),
    Point(1, 0), Point(1, 1), Point(0, 1),
    Point(-1, 1), Point(-1, 0),
)

VON_NEUMANN_HOOD: Tuple[Point, ...] = (
    Point(0, -1), Point(-1, 0), Point(1, 0), Point(0, 1),
)

# _MOORE_TABLE[dy + 1][dx + 1] -> index into MOORE_HOOD; None for the centre.
_MOORE_TABLE: Tuple[Tuple[Optional[int], ...], ...] = (
    (0, 1, 2),
    (7, None, 3),
    (6, 5, 4),
)


def moore_index(dx: int, dy: int) -> int:
    """Return the position of offset ``(dx, dy)`` in :data:`MOORE_HOOD`."""
    if not (-1 <= dx <= 1 and -1 <= dy <= 1):
        raise ValueError(f"Offset ({dx}, {dy}) is not in the Moore neighbourhood")
    index = _MOORE_TABLE[dy + 1][dx + 1]
    if index is None:
        raise ValueError("The centre cell has no Moore index")
    return index


__all__ = [
    "MOORE_HOOD",
    "MoorePixel",
    "Point",
    "VON_NEUMANN_HOOD",
    "moore_index",
    "sign",
]
