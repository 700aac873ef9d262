# mapgen/lattice.py
"""
Lattice helpers shared by the generators: neighbour counts, the border
predicate, connected-component labelling and Moore-neighbourhood contour
tracing.

Maps are 2D grids addressed ``map[y, x]``.  Any 2D numpy array or rectangular
list of lists is accepted; the cave convention FILLED=True / EMPTY=False is
assumed wherever a function talks about walls.
"""

from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

import numba
import numpy as np
import structlog

from common.constants import EMPTY, FILLED
from mapgen.errors import InvalidMap
from mapgen.geometry import (
    MOORE_HOOD,
    VON_NEUMANN_HOOD,
    MoorePixel,
    Point,
    moore_index,
)

log = structlog.get_logger(__name__)

# Von Neumann offsets as arrays for the numba kernel (same order as VON_NEUMANN_HOOD)
_VN_DX = np.array([p.x for p in VON_NEUMANN_HOOD], dtype=np.int64)
_VN_DY = np.array([p.y for p in VON_NEUMANN_HOOD], dtype=np.int64)

# (dy, dx) offsets summed by the vectorised neighbour counts
_ONE_STEP_OFFSETS: Tuple[Tuple[int, int], ...] = tuple(
    (dy, dx) for dy in range(-1, 2) for dx in range(-1, 2)
)
_TWO_STEP_OFFSETS: Tuple[Tuple[int, int], ...] = tuple(
    (dy, dx)
    for dy in range(-2, 3)
    for dx in range(-2, 3)
    if not (abs(dy) == 2 and abs(dx) == 2)
)


class Room:
    """A maximal Von Neumann-connected set of same-state cells.

    Iteration follows discovery (breadth-first) order; ``first`` is the cell
    the flood fill started from.
    """

    __slots__ = ("points", "_members")

    def __init__(self, points: Iterable[Point]):
        self.points: Tuple[Point, ...] = tuple(points)
        self._members = frozenset(self.points)

    @property
    def first(self) -> Point:
        return self.points[0]

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[Point]:
        return iter(self.points)

    def __contains__(self, point: object) -> bool:
        return point in self._members

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Room):
            return NotImplemented
        return self._members == other._members

    def __hash__(self) -> int:
        return hash(self._members)

    def __repr__(self) -> str:
        return f"Room(size={len(self.points)}, first={self.points[0] if self.points else None})"


# --- Validation ---
def as_lattice(grid) -> np.ndarray:
    """Return ``grid`` as a 2D numpy array, raising :class:`InvalidMap` otherwise."""
    if isinstance(grid, np.ndarray):
        arr = grid
    else:
        try:
            rows = [list(row) for row in grid]
        except TypeError as e:
            log.error("Map rows are not sequences", error=str(e))
            raise InvalidMap("Map must be a sequence of rows") from e
        if not rows:
            raise InvalidMap("Map has no rows")
        widths = {len(row) for row in rows}
        if len(widths) != 1:
            log.error("Ragged map rejected", row_widths=sorted(widths))
            raise InvalidMap("Map rows must all have the same length")
        arr = np.asarray(rows)
    if arr.ndim != 2 or arr.shape[0] == 0 or arr.shape[1] == 0:
        log.error("Map has invalid shape", shape=arr.shape)
        raise InvalidMap(f"Map must be a non-empty 2D grid, got shape {arr.shape}")
    return arr


def _check_cell(arr: np.ndarray, y: int, x: int) -> None:
    height, width = arr.shape
    if not (0 <= y < height and 0 <= x < width):
        raise InvalidMap(f"Cell ({y}, {x}) lies outside a {height}x{width} map")


# --- Neighbour counts ---
def neighbor_count_1(grid, y: int, x: int) -> int:
    """Count FILLED cells in the 3x3 block centred on ``(y, x)``, centre included.

    Cells outside the map are skipped.
    """
    arr = as_lattice(grid)
    height, width = arr.shape
    count = 0
    for i in range(y - 1, y + 2):
        for j in range(x - 1, x + 2):
            if i < 0 or j < 0 or i >= height or j >= width:
                continue
            if arr[i, j] == FILLED:
                count += 1
    return count


def neighbor_count_2(grid, y: int, x: int) -> int:
    """Count FILLED cells in the 5x5 block centred on ``(y, x)``.

    The four outermost corners and cells outside the map are skipped.
    """
    arr = as_lattice(grid)
    height, width = arr.shape
    count = 0
    for i in range(y - 2, y + 3):
        for j in range(x - 2, x + 3):
            if abs(i - y) == 2 and abs(j - x) == 2:
                continue
            if i < 0 or j < 0 or i >= height or j >= width:
                continue
            if arr[i, j] == FILLED:
                count += 1
    return count


def _window_sum(arr: np.ndarray, offsets: Sequence[Tuple[int, int]]) -> np.ndarray:
    height, width = arr.shape
    pad = 2
    padded = np.zeros((height + 2 * pad, width + 2 * pad), dtype=np.int32)
    padded[pad : pad + height, pad : pad + width] = arr == FILLED
    total = np.zeros((height, width), dtype=np.int32)
    for dy, dx in offsets:
        total += padded[pad + dy : pad + dy + height, pad + dx : pad + dx + width]
    return total


def neighbor_counts_1(grid) -> np.ndarray:
    """Whole-grid :func:`neighbor_count_1`, as an int32 array."""
    return _window_sum(as_lattice(grid), _ONE_STEP_OFFSETS)


def neighbor_counts_2(grid) -> np.ndarray:
    """Whole-grid :func:`neighbor_count_2`, as an int32 array."""
    return _window_sum(as_lattice(grid), _TWO_STEP_OFFSETS)


# --- Border predicate ---
def _is_border_point(arr: np.ndarray, y: int, x: int, value) -> bool:
    height, width = arr.shape
    for p in VON_NEUMANN_HOOD:
        x1 = x + p.x
        y1 = y + p.y
        if x1 < 0 or y1 < 0 or y1 >= height or x1 >= width:
            continue
        if arr[y1, x1] != value:
            return True
    return False


def is_border_point(grid, y: int, x: int, value=FILLED) -> bool:
    """True if an in-bounds Von Neumann neighbour of ``(y, x)`` differs from ``value``.

    The cell's own value is not checked.
    """
    return _is_border_point(as_lattice(grid), y, x, value)


# --- Connected components ---
@numba.njit(cache=True)
def _label_components(mask):
    """Breadth-first labelling of the True cells of ``mask``.

    Returns ``(labels, order, sizes)``: ``order`` lists visited ``(y, x)``
    cells component by component, in visiting order; ``sizes`` gives each
    component's length within ``order``.
    """
    height, width = mask.shape
    labels = np.full((height, width), -1, dtype=np.int64)
    order = np.empty((height * width, 2), dtype=np.int64)
    sizes = np.zeros(height * width, dtype=np.int64)
    head = 0
    tail = 0
    count = 0
    for y0 in range(height):
        for x0 in range(width):
            if not mask[y0, x0] or labels[y0, x0] != -1:
                continue
            labels[y0, x0] = count
            order[tail, 0] = y0
            order[tail, 1] = x0
            tail += 1
            while head < tail:
                cy = order[head, 0]
                cx = order[head, 1]
                head += 1
                sizes[count] += 1
                for k in range(4):
                    ny = cy + _VN_DY[k]
                    nx = cx + _VN_DX[k]
                    if ny < 0 or nx < 0 or ny >= height or nx >= width:
                        continue
                    if mask[ny, nx] and labels[ny, nx] == -1:
                        labels[ny, nx] = count
                        order[tail, 0] = ny
                        order[tail, 1] = nx
                        tail += 1
            count += 1
    return labels, order[:tail], sizes[:count]


def connected_components(grid, value) -> List[Room]:
    """Return the rooms of cells equal to ``value``.

    Seeds are discovered in row-major order and each room is filled
    breadth-first, enqueueing neighbours in Von Neumann order, so the room
    order and the order of cells inside each room are deterministic.
    """
    arr = as_lattice(grid)
    mask = np.ascontiguousarray(arr == value)
    _, order, sizes = _label_components(mask)
    cells = order.tolist()
    rooms: List[Room] = []
    start = 0
    for size in sizes.tolist():
        rooms.append(Room(Point(x, y) for y, x in cells[start : start + size]))
        start += size
    log.debug("Labelled connected components", value=value, rooms=len(rooms), cells=len(cells))
    return rooms


# --- Moore-neighbourhood contour tracing ---
def _find_empty_neighbor(arr: np.ndarray, point: Point) -> Optional[Point]:
    height, width = arr.shape
    for offset in MOORE_HOOD:
        current = point.add(offset)
        if not current.valid(0, width, 0, height):
            continue
        if arr[current.y, current.x] == EMPTY:
            return current
    return None


def find_empty_neighbor(grid, point: Point) -> Optional[Point]:
    """First in-bounds EMPTY cell around ``point``, walking the Moore ring from index 0."""
    return _find_empty_neighbor(as_lattice(grid), point)


def _next_clockwise_pixel(
    arr: np.ndarray, current: Optional[Point], backtrack: Optional[Point]
) -> Optional[MoorePixel]:
    if backtrack is None:
        log.error("Missing backtrack point", current=current)
        raise ValueError(f"Missing backtrack point. current: {current}")
    if current is None:
        log.error("Missing current point", backtrack=backtrack)
        raise ValueError(f"Missing current point. backtrack: {backtrack}")

    height, width = arr.shape
    delta = backtrack.subtract(current).wrap()
    start = moore_index(delta.x, delta.y)

    last_point = backtrack
    for i in range(1, len(MOORE_HOOD) + 1):
        index = (start + i) % len(MOORE_HOOD)
        p = current.add(MOORE_HOOD[index])
        if not p.valid(0, width, 0, height):
            continue
        if arr[p.y, p.x] == FILLED:
            return MoorePixel(p, last_point)
        last_point = p
    return None


def next_clockwise_pixel(
    grid, current: Optional[Point], backtrack: Optional[Point]
) -> Optional[MoorePixel]:
    """Next FILLED cell clockwise around ``current``, starting after ``backtrack``.

    ``backtrack`` is the empty cell last visited before entering ``current``.
    Returns ``None`` when ``current`` has no FILLED neighbour.
    """
    return _next_clockwise_pixel(as_lattice(grid), current, backtrack)


def _trace_contour(arr: np.ndarray, start: Point) -> List[Point]:
    boundary = [start]
    backtrack = _find_empty_neighbor(arr, start)
    if backtrack is None:
        log.warning("Contour start has no empty neighbour", start=start)
        return boundary

    seen = set()
    pixel = _next_clockwise_pixel(arr, start, backtrack)
    while pixel is not None and pixel.point != start:
        if pixel in seen:
            log.warning(
                "Contour trace cycled without returning to its start",
                start=start,
                traced=len(boundary),
            )
            break
        seen.add(pixel)
        boundary.append(pixel.point)
        pixel = _next_clockwise_pixel(arr, pixel.point, pixel.backtrack)
    return boundary


def trace_contour(grid, start: Point) -> List[Point]:
    """Trace the boundary loop that passes through the FILLED border cell ``start``."""
    arr = as_lattice(grid)
    _check_cell(arr, start.y, start.x)
    if arr[start.y, start.x] != FILLED:
        raise InvalidMap(f"Contour start {start} is not a filled cell")
    return _trace_contour(arr, start)


def _first_border_point(arr: np.ndarray, room: Room) -> Optional[Point]:
    return min(
        (p for p in room if _is_border_point(arr, p.y, p.x, FILLED)),
        key=lambda p: (p.y, p.x),
        default=None,
    )


def get_contour(grid) -> List[Point]:
    """Concatenated outer contours of every FILLED component of ``grid``."""
    arr = as_lattice(grid)
    rooms = connected_components(arr, FILLED)
    log.debug("Tracing contours", components=len(rooms))

    contour: List[Point] = []
    for room in rooms:
        start = _first_border_point(arr, room)
        if start is None:
            log.warning(
                "Filled component has no border point", size=len(room), first=room.first
            )
            continue
        contour.extend(_trace_contour(arr, start))
    return contour


__all__ = [
    "Room",
    "as_lattice",
    "connected_components",
    "find_empty_neighbor",
    "get_contour",
    "is_border_point",
    "neighbor_count_1",
    "neighbor_count_2",
    "neighbor_counts_1",
    "neighbor_counts_2",
    "next_clockwise_pixel",
    "trace_contour",
]
