# mapgen/render.py
"""Plain-text renderings of generated maps, one character per cell."""

from typing import Iterable, Optional, Sequence

import numpy as np

from common.constants import FILLED, FOREST, FOREST_EMPTY, SEEDED
from mapgen.geometry import Point
from mapgen.lattice import Room, as_lattice

WALL_CHAR = "#"
FLOOR_CHAR = "."
CONTOUR_CHAR = "*"

FOREST_CHARS = {FOREST: "+", SEEDED: ".", FOREST_EMPTY: "_"}

# Labels for room indices in overlays; rooms past the end keep the floor glyph
ROOM_LABELS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _join(chars: np.ndarray) -> str:
    return "\n".join("".join(row) for row in chars.tolist())


def render_cave(grid) -> str:
    arr = as_lattice(grid)
    return _join(np.where(arr == FILLED, WALL_CHAR, FLOOR_CHAR))


def render_forest(grid) -> str:
    arr = as_lattice(grid)
    chars = np.full(arr.shape, "?", dtype="<U1")
    for value, char in FOREST_CHARS.items():
        chars[arr == value] = char
    return _join(chars)


def render_overlay(
    grid,
    contour: Optional[Iterable[Point]] = None,
    rooms: Optional[Sequence[Room]] = None,
) -> str:
    """Cave rendering with room indices on open cells and contour cells starred."""
    arr = as_lattice(grid)
    chars = np.where(arr == FILLED, WALL_CHAR, FLOOR_CHAR)
    for index, room in enumerate(rooms or ()):
        if index >= len(ROOM_LABELS):
            break
        for p in room:
            chars[p.y, p.x] = ROOM_LABELS[index]
    for p in contour or ():
        chars[p.y, p.x] = CONTOUR_CHAR
    return _join(chars)


__all__ = ["render_cave", "render_forest", "render_overlay"]
