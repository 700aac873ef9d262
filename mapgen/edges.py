# mapgen/edges.py
"""
Convert contour cells into line segments along cell edges.

Cell ``(x, y)`` covers the square with corners ``(x, y)`` and ``(x + 1, y + 1)``.
Each contour cell contributes one unit edge for every side that faces an
in-bounds EMPTY cell; :func:`contour_lines` then merges touching edges of the
same orientation into longer segments, which is what a consumer wants for
collision shapes.
"""

from typing import List, NamedTuple, Sequence, Set

import structlog

from common.constants import EMPTY
from mapgen.geometry import Point
from mapgen.lattice import as_lattice, get_contour

log = structlog.get_logger(__name__)


class Line(NamedTuple):
    start: Point
    end: Point

    def __str__(self) -> str:
        return f"{self.start} -- {self.end}"


# Corners of a cell relative to its coordinate
_TOP_LEFT = Point(0, 0)
_TOP_RIGHT = Point(1, 0)
_BOTTOM_RIGHT = Point(1, 1)
_BOTTOM_LEFT = Point(0, 1)

# (neighbour offset, edge start corner, edge end corner), checked in this order
_SIDES = (
    (Point(0, -1), _TOP_LEFT, _TOP_RIGHT),
    (Point(1, 0), _TOP_RIGHT, _BOTTOM_RIGHT),
    (Point(0, 1), _BOTTOM_LEFT, _BOTTOM_RIGHT),
    (Point(-1, 0), _TOP_LEFT, _BOTTOM_LEFT),
)


def edge_lines(points: Sequence[Point], grid) -> List[Line]:
    """Unit edges of ``points`` that face an EMPTY cell."""
    arr = as_lattice(grid)
    height, width = arr.shape
    edges: List[Line] = []
    for point in points:
        for offset, start, end in _SIDES:
            neighbour = point.add(offset)
            if neighbour.valid(0, width, 0, height) and arr[neighbour.y, neighbour.x] == EMPTY:
                edges.append(Line(point.add(start), point.add(end)))
    return edges


class _EdgeRun:
    """Collinear edges joined end to end."""

    def __init__(self, line: Line):
        self.connectors: Set[Point] = {line.start, line.end}
        self.delta = line.end.subtract(line.start).abs()
        self.min = Point(min(line.start.x, line.end.x), min(line.start.y, line.end.y))
        self.max = Point(max(line.start.x, line.end.x), max(line.start.y, line.end.y))

    def can_add(self, line: Line) -> bool:
        if line.start not in self.connectors and line.end not in self.connectors:
            return False
        return line.end.subtract(line.start).abs() == self.delta

    def add(self, line: Line) -> None:
        self.connectors.update((line.start, line.end))
        for p in (line.start, line.end):
            self.min = Point(min(self.min.x, p.x), min(self.min.y, p.y))
            self.max = Point(max(self.max.x, p.x), max(self.max.y, p.y))

    def as_line(self) -> Line:
        return Line(self.min, self.max)


def merge_edges(edges: Sequence[Line]) -> List[Line]:
    """Greedily merge edges into runs; each edge joins the first run that accepts it."""
    runs: List[_EdgeRun] = []
    for edge in edges:
        for run in runs:
            if run.can_add(edge):
                run.add(edge)
                break
        else:
            runs.append(_EdgeRun(edge))
    return [run.as_line() for run in runs]


def contour_lines(grid) -> List[Line]:
    """Merged boundary segments of every FILLED component of ``grid``."""
    arr = as_lattice(grid)
    points = get_contour(arr)
    edges = edge_lines(points, arr)
    lines = merge_edges(edges)
    log.debug("Built contour lines", contour_points=len(points), edges=len(edges), lines=len(lines))
    return lines


__all__ = ["Line", "contour_lines", "edge_lines", "merge_edges"]
