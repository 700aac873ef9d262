# mapgen/config.py
"""Generator configuration records and their validation."""

from __future__ import annotations

import math
from dataclasses import dataclass, fields
from typing import Any, Mapping, NamedTuple, Optional, Tuple

import structlog

from common.constants import (
    DEFAULT_DESIRED_COVERAGE,
    DEFAULT_FILL_PROBABILITY,
    DEFAULT_INITIAL_TREES,
    DEFAULT_RNG_KIND,
    DEFAULT_SEED,
    DEFAULT_SEED_DECAY,
    DEFAULT_SEED_RADIUS,
    DEFAULT_SEED_STRENGTH,
    MIN_CAVE_SIZE,
    MIN_FOREST_SIZE,
)
from map_rng import RNG_KINDS
from mapgen.errors import ConfigurationError

log = structlog.get_logger(__name__)


class CavePhase(NamedTuple):
    """One batch of cellular-automaton rounds.

    A cell becomes FILLED when its 3x3 count is at least ``min_count`` or its
    two-step count is at most ``max_count``.
    """
    min_count: int
    max_count: int
    rounds: int


def _fail(message: str, **context: Any) -> None:
    log.error("Invalid generator configuration", reason=message, **context)
    raise ConfigurationError(message)


def _check_int(name: str, value: Any, minimum: Optional[int] = None) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        _fail(f"{name} must be an integer", field=name, value=value)
    if minimum is not None and value < minimum:
        _fail(f"{name} must be >= {minimum}", field=name, value=value)


def _check_unit_interval(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        _fail(f"{name} must be a number", field=name, value=value)
    if math.isnan(value) or not 0.0 <= value <= 1.0:
        _fail(f"{name} must lie in [0, 1]", field=name, value=value)


def _check_rng(value: Any) -> None:
    if value not in RNG_KINDS:
        _fail(f"rng must be one of {sorted(RNG_KINDS)}", field="rng", value=value)


def _coerce_phase(raw: Any) -> CavePhase:
    if isinstance(raw, Mapping):
        try:
            return CavePhase(
                int(raw.get("min_count", raw.get("min"))),
                int(raw.get("max_count", raw.get("max"))),
                int(raw["rounds"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            log.error("Malformed cave phase", phase=dict(raw), error=str(e))
            raise ConfigurationError(f"Malformed cave phase: {dict(raw)!r}") from e
    try:
        min_count, max_count, rounds = raw
    except (TypeError, ValueError) as e:
        log.error("Malformed cave phase", phase=raw, error=str(e))
        raise ConfigurationError(f"Malformed cave phase: {raw!r}") from e
    return CavePhase(min_count, max_count, rounds)


def _mapping_kwargs(cls: type, data: Mapping[str, Any], section: str) -> dict:
    if not isinstance(data, Mapping):
        _fail(f"{section} configuration must be a mapping", section=section)
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        _fail(f"Unknown {section} option(s): {', '.join(unknown)}", section=section)
    return dict(data)


@dataclass(frozen=True)
class CaveConfig:
    width: int
    height: int
    seed: int = DEFAULT_SEED
    phases: Tuple[CavePhase, ...] = ()
    fill_probability: float = DEFAULT_FILL_PROBABILITY
    rng: str = DEFAULT_RNG_KIND

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "phases", tuple(_coerce_phase(p) for p in self.phases)
        )

    def validate(self) -> "CaveConfig":
        _check_int("width", self.width, MIN_CAVE_SIZE)
        _check_int("height", self.height, MIN_CAVE_SIZE)
        _check_int("seed", self.seed, 0)
        for index, phase in enumerate(self.phases):
            _check_int(f"phases[{index}].min_count", phase.min_count)
            _check_int(f"phases[{index}].max_count", phase.max_count)
            _check_int(f"phases[{index}].rounds", phase.rounds, 0)
        _check_unit_interval("fill_probability", self.fill_probability)
        _check_rng(self.rng)
        return self

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "CaveConfig":
        """Build a validated config from a plain mapping (e.g. a YAML section)."""
        kwargs = _mapping_kwargs(cls, data, "cave")
        if "width" not in kwargs or "height" not in kwargs:
            _fail("cave configuration needs width and height", section="cave")
        phases = kwargs.get("phases") or ()
        if not isinstance(phases, (list, tuple)):
            _fail("cave phases must be a list", field="phases", value=phases)
        kwargs["phases"] = tuple(phases)
        return cls(**kwargs).validate()


@dataclass(frozen=True)
class ForestConfig:
    width: int
    height: int
    seed: int = DEFAULT_SEED
    initial_trees: int = DEFAULT_INITIAL_TREES
    seed_radius: int = DEFAULT_SEED_RADIUS
    seed_decay: float = DEFAULT_SEED_DECAY
    seed_strength: float = DEFAULT_SEED_STRENGTH
    desired_coverage: float = DEFAULT_DESIRED_COVERAGE
    # Safety cap on growth steps; None lets generation run until coverage is met.
    max_steps: Optional[int] = None
    rng: str = DEFAULT_RNG_KIND

    def validate(self) -> "ForestConfig":
        _check_int("width", self.width, MIN_FOREST_SIZE)
        _check_int("height", self.height, MIN_FOREST_SIZE)
        _check_int("seed", self.seed, 0)
        _check_int("initial_trees", self.initial_trees, 0)
        _check_int("seed_radius", self.seed_radius, 0)
        _check_unit_interval("seed_decay", self.seed_decay)
        _check_unit_interval("seed_strength", self.seed_strength)
        _check_unit_interval("desired_coverage", self.desired_coverage)
        if self.max_steps is not None:
            _check_int("max_steps", self.max_steps, 0)
        _check_rng(self.rng)
        return self

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ForestConfig":
        """Build a validated config from a plain mapping (e.g. a YAML section)."""
        kwargs = _mapping_kwargs(cls, data, "forest")
        if "width" not in kwargs or "height" not in kwargs:
            _fail("forest configuration needs width and height", section="forest")
        return cls(**kwargs).validate()


__all__ = ["CaveConfig", "CavePhase", "ForestConfig"]
