# mapgen/cave.py
"""
Cellular-automaton cave generator.

The map starts as random noise inside a solid border, is smoothed by one or
more :class:`~mapgen.config.CavePhase` batches, and finally every secondary
open region is tunnelled toward the map centre in the hope of joining the
main cave.  Stitching is best effort: rooms that cannot be joined are logged
and counted in :attr:`CaveGenerator.failed_fixes`.
"""

from typing import List, Optional, Tuple

import numpy as np
import structlog

from common.constants import EMPTY, FILLED
from map_rng import RandomSource, make_rng
from mapgen.config import CaveConfig, CavePhase
from mapgen.errors import MapGenError
from mapgen.geometry import Point, sign
from mapgen.lattice import Room, connected_components, neighbor_counts_1, neighbor_counts_2

log = structlog.get_logger(__name__)


class CaveGenerator:
    def __init__(self, config: CaveConfig, rng: Optional[RandomSource] = None):
        self.config = config.validate()
        self.width = config.width
        self.height = config.height
        self._seed = config.seed
        self.rng: RandomSource = rng if rng is not None else make_rng(config.rng, config.seed)
        self._map: Optional[np.ndarray] = None
        self._back: Optional[np.ndarray] = None
        self.failed_fixes = 0
        log.debug(
            "CaveGenerator created",
            width=self.width,
            height=self.height,
            seed=self._seed,
            phases=len(config.phases),
        )

    # --- Properties ---
    @property
    def seed(self) -> int:
        return self._seed

    @property
    def phases(self) -> Tuple[CavePhase, ...]:
        return self.config.phases

    def get_phase(self, index: int) -> CavePhase:
        try:
            return self.config.phases[index]
        except IndexError:
            log.error("Phase index out of range", index=index, phases=len(self.config.phases))
            raise

    def reseed(self, seed: int) -> None:
        """Use ``seed`` from the next :meth:`initialize` on."""
        if seed < 0:
            log.error("Negative seed rejected", seed=seed)
            raise ValueError("seed must be non-negative")
        self._seed = seed

    def _require_map(self) -> np.ndarray:
        if self._map is None:
            log.error("Cave map used before initialize()")
            raise MapGenError("Cave map is not initialized; call initialize() first")
        return self._map

    def get_map(self) -> np.ndarray:
        """Read-only view of the current map. Do not hold it across :meth:`step`."""
        view = self._require_map().view()
        view.flags.writeable = False
        return view

    # --- Automaton ---
    def initialize(self) -> None:
        self.rng.reseed(self._seed)
        height, width = self.height, self.width
        fill_probability = self.config.fill_probability

        self._map = np.full((height, width), FILLED, dtype=bool, order="C")
        self._back = np.full((height, width), FILLED, dtype=bool, order="C")
        for y in range(1, height - 1):
            for x in range(1, width - 1):
                self._map[y, x] = self.rng.next_double() < fill_probability
        self.failed_fixes = 0
        log.debug(
            "Cave initialized",
            seed=self._seed,
            filled=int(np.count_nonzero(self._map)),
            cells=self._map.size,
        )

    def step(self, min_count: int, max_count: int) -> None:
        """One automaton round over the interior; the border stays FILLED."""
        current = self._require_map()
        count1 = neighbor_counts_1(current)[1:-1, 1:-1]
        count2 = neighbor_counts_2(current)[1:-1, 1:-1]
        self._back[1:-1, 1:-1] = (count1 >= min_count) | (count2 <= max_count)
        self._map, self._back = self._back, self._map

    def iterate(self) -> None:
        for phase in self.config.phases:
            log.debug(
                "Running cave phase",
                min_count=phase.min_count,
                max_count=phase.max_count,
                rounds=phase.rounds,
            )
            for _ in range(phase.rounds):
                self.step(phase.min_count, phase.max_count)

    # --- Rooms ---
    def rooms(self) -> List[Room]:
        """Open regions of the current map, largest first."""
        rooms = connected_components(self._require_map(), EMPTY)
        return sorted(rooms, key=len, reverse=True)

    def fix_room(self, room: Room) -> bool:
        """Tunnel from ``room`` toward the map centre until another open cell is hit.

        Returns True when the tunnel reached an EMPTY cell outside ``room``.
        """
        grid = self._require_map()
        p = room.first
        delta = Point(sign(self.width // 2 - p.x), sign(self.height // 2 - p.y))
        if delta == (0, 0):
            log.warning("Room starts at the map centre; nothing to tunnel toward", start=p)
            return False

        carved = 0
        while True:
            moved = p
            while moved == p:
                if self.rng.next_double() < 0.5:
                    moved = p.translate(delta.x, 0)
                else:
                    moved = p.translate(0, delta.y)
            p = moved

            if not p.valid(1, self.width - 1, 1, self.height - 1):
                log.warning(
                    "Room tunnel left the map interior",
                    start=room.first,
                    stopped_at=p,
                    room_size=len(room),
                    carved=carved,
                )
                return False
            if grid[p.y, p.x] == EMPTY:
                if p not in room:
                    log.debug("Room connected", start=room.first, end=p, carved=carved)
                    return True
            else:
                grid[p.y, p.x] = EMPTY
                carved += 1

    def generate(self) -> np.ndarray:
        log.info(
            "Starting cave generation",
            width=self.width,
            height=self.height,
            seed=self._seed,
            phases=len(self.config.phases),
        )
        self.initialize()
        self.iterate()

        rooms = self.rooms()
        failed = 0
        for room in rooms[1:]:
            if not self.fix_room(room):
                failed += 1
        self.failed_fixes = failed

        log.info(
            "Cave generation complete",
            rooms=len(rooms),
            failed_fixes=failed,
            empty=int(np.count_nonzero(self._map == EMPTY)),
        )
        return self.get_map()


__all__ = ["CaveGenerator"]
