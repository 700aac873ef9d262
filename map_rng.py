"""Deterministic random sources for map generation.

Every generator draws from a :class:`RandomSource`.  Two streams are pinned:

* ``"pcg64"`` -- :class:`GameRNG`, a thin wrapper over
  ``numpy.random.default_rng`` (PCG64).  This is the default.
* ``"lcg48"`` -- :class:`Lcg48Random`, the classic 48-bit linear congruential
  stream (multiplier ``0x5DEECE66D``).  Useful when maps must be reproduced
  from seeds recorded against that stream.

Both produce bit-identical sequences for the same seed on every platform.
"""

from __future__ import annotations

from typing import Dict, Optional, Protocol, runtime_checkable

import numpy as np
import structlog

log = structlog.get_logger(__name__)

SEED_MASK = 0xFFFFFFFFFFFFFFFF


@runtime_checkable
class RandomSource(Protocol):
    """Capabilities a map generator needs from its random stream."""

    def next_double(self) -> float: ...

    def next_int(self, bound: int) -> int: ...

    def reseed(self, seed: int) -> None: ...


# ---------------------------------------------------------------------------
# PCG64 (numpy) implementation
# ---------------------------------------------------------------------------


class GameRNG:
    def __init__(self, seed: int = 7) -> None:
        self.initial_seed = int(seed) & SEED_MASK
        self.rng = np.random.default_rng(self.initial_seed)

    # ------------------------------------------------------------------
    # RandomSource
    # ------------------------------------------------------------------
    def next_double(self) -> float:
        return float(self.rng.random())

    def next_int(self, bound: int) -> int:
        if bound <= 0:
            raise ValueError("bound must be positive")
        return int(self.rng.integers(0, bound))

    def reseed(self, seed: int) -> None:
        self.initial_seed = int(seed) & SEED_MASK
        self.rng = np.random.default_rng(self.initial_seed)

    def __repr__(self) -> str:
        return f"GameRNG(seed={self.initial_seed})"


# ---------------------------------------------------------------------------
# 48-bit LCG implementation
# ---------------------------------------------------------------------------

LCG_MULTIPLIER = 0x5DEECE66D
LCG_INCREMENT = 0xB
LCG_MASK = (1 << 48) - 1
DOUBLE_UNIT = 1.0 / (1 << 53)


class Lcg48Random:
    """48-bit linear congruential generator.

    ``state = (state * 0x5DEECE66D + 0xB) mod 2**48``; the high bits of the
    state are handed out.  The seed is scrambled with the multiplier so that
    small seeds do not start from a near-zero state.
    """

    def __init__(self, seed: int = 7) -> None:
        self.initial_seed = int(seed) & SEED_MASK
        self.state = (self.initial_seed ^ LCG_MULTIPLIER) & LCG_MASK

    def reseed(self, seed: int) -> None:
        self.initial_seed = int(seed) & SEED_MASK
        self.state = (self.initial_seed ^ LCG_MULTIPLIER) & LCG_MASK

    def next_bits(self, bits: int) -> int:
        """Advance the state and return its top ``bits`` bits (1..32)."""
        if not 1 <= bits <= 32:
            raise ValueError("bits must be in 1..32")
        self.state = (self.state * LCG_MULTIPLIER + LCG_INCREMENT) & LCG_MASK
        return self.state >> (48 - bits)

    def next_double(self) -> float:
        high = self.next_bits(26)
        low = self.next_bits(27)
        return ((high << 27) + low) * DOUBLE_UNIT

    def next_int(self, bound: int) -> int:
        if bound <= 0:
            raise ValueError("bound must be positive")
        if bound & (bound - 1) == 0:
            return (bound * self.next_bits(31)) >> 31
        while True:
            bits = self.next_bits(31)
            value = bits % bound
            # Reject draws from the truncated top bucket of the 31-bit range.
            if bits - value + (bound - 1) < (1 << 31):
                return value

    def __repr__(self) -> str:
        return f"Lcg48Random(seed={self.initial_seed})"


RNG_KINDS: Dict[str, type] = {
    "pcg64": GameRNG,
    "lcg48": Lcg48Random,
}


def make_rng(kind: str = "pcg64", seed: Optional[int] = None) -> RandomSource:
    """Build the random source registered under ``kind``."""
    try:
        rng_cls = RNG_KINDS[kind]
    except KeyError:
        log.error("Unknown RNG kind requested", kind=kind, known=sorted(RNG_KINDS))
        raise ValueError(f"Unknown RNG kind: {kind!r}") from None
    return rng_cls(7 if seed is None else seed)


__all__ = [
    "GameRNG",
    "Lcg48Random",
    "RNG_KINDS",
    "RandomSource",
    "make_rng",
]
