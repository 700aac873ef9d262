# mapgen/forest.py
"""
Seed-and-sprout forest generator.

Trees stamp a small plus-shaped footprint of FOREST cells.  Every growth step
each tree scatters seed strength over a disc around itself; seeded cells
sprout new trees with probability equal to their strength, which decays a
little every step.  Generation stops once the requested share of the map is
FOREST.

The seed field is stored densely: ``_strength`` holds the accumulated
strength and ``_seeded`` marks which cells currently have an entry.  All
passes over it walk ``np.nonzero(self._seeded)``, i.e. row-major order.
"""

import math
from typing import Dict, List, NamedTuple, Optional, Tuple

import numpy as np
import structlog

from common.constants import FOREST, FOREST_EMPTY, SEEDED
from map_rng import RandomSource, make_rng
from mapgen.config import ForestConfig
from mapgen.errors import MapGenError
from mapgen.geometry import Point

log = structlog.get_logger(__name__)

# Diagonal cells of the tree footprint
_DIAGONALS: Tuple[Tuple[int, int], ...] = ((-1, -1), (1, -1), (-1, 1), (1, 1))
_FOOTPRINT_ARM = 2


class Span(NamedTuple):
    """Horizontal run of cells ``start.x..end.x`` (inclusive) on one row."""
    start: Point
    end: Point

    @property
    def length(self) -> int:
        return self.end.x - self.start.x + 1

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


class ForestGenerator:
    def __init__(self, config: ForestConfig, rng: Optional[RandomSource] = None):
        self.config = config.validate()
        self.width = config.width
        self.height = config.height
        self._seed = config.seed
        self.rng: RandomSource = rng if rng is not None else make_rng(config.rng, config.seed)

        self.steps_taken = 0
        self.cap_reached = False
        self.stalled = False
        self._reset_state()
        log.debug(
            "ForestGenerator created",
            width=self.width,
            height=self.height,
            seed=self._seed,
            initial_trees=config.initial_trees,
            desired_coverage=config.desired_coverage,
        )

    def _reset_state(self) -> None:
        shape = (self.height, self.width)
        self._grid = np.full(shape, FOREST_EMPTY, dtype=np.uint8, order="C")
        self._strength = np.zeros(shape, dtype=np.float64, order="C")
        self._seeded = np.zeros(shape, dtype=bool, order="C")
        self._trees: List[Point] = []

    # --- Accessors ---
    @property
    def seed(self) -> int:
        return self._seed

    @property
    def trees(self) -> Tuple[Point, ...]:
        return tuple(self._trees)

    @property
    def seeds(self) -> Dict[Point, float]:
        """Copy of the seed field in row-major order."""
        ys, xs = np.nonzero(self._seeded)
        return {
            Point(int(x), int(y)): float(self._strength[y, x])
            for y, x in zip(ys.tolist(), xs.tolist())
        }

    def get_forest(self) -> np.ndarray:
        view = self._grid.view()
        view.flags.writeable = False
        return view

    def coverage(self) -> float:
        return np.count_nonzero(self._grid == FOREST) / self._grid.size

    def get_coverage(self) -> float:
        return self.coverage()

    def reseed(self, seed: int) -> None:
        """Use ``seed`` from the next :meth:`initialize` on."""
        if seed < 0:
            log.error("Negative seed rejected", seed=seed)
            raise ValueError("seed must be non-negative")
        self._seed = seed

    # --- Growth ---
    def initialize(self) -> None:
        self.rng.reseed(self._seed)
        self._reset_state()
        self.steps_taken = 0
        self.cap_reached = False
        self.stalled = False

        for planted in range(self.config.initial_trees):
            if not np.any(self._grid == FOREST_EMPTY):
                log.warning(
                    "No empty cell left for initial trees",
                    planted=planted,
                    requested=self.config.initial_trees,
                )
                break
            while True:
                x = self.rng.next_int(self.width)
                y = self.rng.next_int(self.height)
                if self._grid[y, x] == FOREST_EMPTY:
                    self.add_tree(x, y)
                    break
        log.debug("Forest initialized", seed=self._seed, trees=len(self._trees), coverage=self.coverage())

    def add_tree(self, x: int, y: int) -> None:
        """Record a tree at ``(x, y)`` and stamp its footprint as FOREST."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            log.error("Tree outside forest", x=x, y=y, width=self.width, height=self.height)
            raise MapGenError(f"Tree ({x}, {y}) lies outside a {self.width}x{self.height} forest")
        self._trees.append(Point(x, y))

        arm = _FOOTPRINT_ARM
        self._grid[y, max(0, x - arm) : min(self.width, x + arm + 1)] = FOREST
        self._grid[max(0, y - arm) : min(self.height, y + arm + 1), x] = FOREST
        for dx, dy in _DIAGONALS:
            x1, y1 = x + dx, y + dy
            if 0 <= x1 < self.width and 0 <= y1 < self.height:
                self._grid[y1, x1] = FOREST

    def find_range(self, x: int, y: int, radius: int) -> List[Span]:
        """Row spans covering the disc of ``radius`` around ``(x, y)``, clipped to the map.

        The centre row comes first, then the rows above and below at each
        distance ``i = 1..radius``.  An off-map centre yields no spans.
        """
        if not (0 <= x < self.width and 0 <= y < self.height):
            return []
        last_x = self.width - 1
        spans = [Span(Point(max(0, x - radius), y), Point(min(last_x, x + radius), y))]
        for i in range(1, radius + 1):
            r = math.isqrt(radius * radius - i * i)
            x0, x1 = max(0, x - r), min(last_x, x + r)
            if y - i >= 0:
                spans.append(Span(Point(x0, y - i), Point(x1, y - i)))
            if y + i < self.height:
                spans.append(Span(Point(x0, y + i), Point(x1, y + i)))
        return spans

    def step(self) -> None:
        """One growth round: decay, sprout, dedup, then seed emission."""
        config = self.config

        # decay
        self._strength[self._seeded] *= 1.0 - config.seed_decay

        # sprout
        ys, xs = np.nonzero(self._seeded)
        for y, x in zip(ys.tolist(), xs.tolist()):
            if self.rng.next_double() < self._strength[y, x]:
                self.add_tree(x, y)

        # dedup
        if self._trees:
            tree_xy = np.array(self._trees, dtype=np.int64)
            self._seeded[tree_xy[:, 1], tree_xy[:, 0]] = False
            self._strength[tree_xy[:, 1], tree_xy[:, 0]] = 0.0

        # emission
        for tree in self._trees:
            for span in self.find_range(tree.x, tree.y, config.seed_radius):
                row = span.start.y
                cols = slice(span.start.x, span.end.x + 1)
                open_cells = self._grid[row, cols] != FOREST
                self._grid[row, cols][open_cells] = SEEDED
                self._strength[row, cols][open_cells] += config.seed_strength
                self._seeded[row, cols] |= open_cells

    def _can_sprout(self) -> bool:
        decayed = self._strength[self._seeded] * (1.0 - self.config.seed_decay)
        return bool(np.any(decayed > 0.0))

    def remove_seeds(self) -> None:
        self._grid[self._grid == SEEDED] = FOREST_EMPTY

    def generate(self) -> np.ndarray:
        config = self.config
        log.info(
            "Starting forest generation",
            width=self.width,
            height=self.height,
            seed=self._seed,
            desired_coverage=config.desired_coverage,
            max_steps=config.max_steps,
        )
        self.initialize()

        while self.coverage() < config.desired_coverage:
            if config.max_steps is not None and self.steps_taken >= config.max_steps:
                self.cap_reached = True
                log.warning(
                    "Forest step cap reached before desired coverage",
                    steps=self.steps_taken,
                    coverage=self.coverage(),
                    desired_coverage=config.desired_coverage,
                )
                break
            self.step()
            self.steps_taken += 1
            if self.coverage() < config.desired_coverage and not self._can_sprout():
                self.stalled = True
                log.warning(
                    "Forest growth stalled: no seed can sprout",
                    steps=self.steps_taken,
                    coverage=self.coverage(),
                    desired_coverage=config.desired_coverage,
                )
                break

        self.remove_seeds()
        self._strength.fill(0.0)
        self._seeded.fill(False)
        log.info(
            "Forest generation complete",
            steps=self.steps_taken,
            trees=len(self._trees),
            coverage=self.coverage(),
            cap_reached=self.cap_reached,
            stalled=self.stalled,
        )
        return self.get_forest()


__all__ = ["ForestGenerator", "Span"]
