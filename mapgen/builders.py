# mapgen/builders.py
"""Fluent, single-use builders for the cave and forest generators."""

from typing import Any, Dict, List, Optional, Union

import structlog

from map_rng import RandomSource
from mapgen.cave import CaveGenerator
from mapgen.config import CaveConfig, CavePhase, ForestConfig
from mapgen.errors import ConfigurationError
from mapgen.forest import ForestGenerator

log = structlog.get_logger(__name__)


class _GeneratorBuilder:
    _kind = "generator"

    def __init__(self) -> None:
        self._options: Dict[str, Any] = {}
        self._rng: Optional[RandomSource] = None
        self._consumed = False

    def _set(self, **options: Any):
        if self._consumed:
            log.error("Builder reused after build()", builder=self._kind)
            raise ConfigurationError(f"{self._kind} builder has already been built")
        self._options.update(options)
        return self

    def with_size(self, width: int, height: int):
        return self._set(width=width, height=height)

    def with_width(self, width: int):
        return self._set(width=width)

    def with_height(self, height: int):
        return self._set(height=height)

    def with_seed(self, seed: int):
        return self._set(seed=seed)

    def with_rng(self, rng: Union[str, RandomSource]):
        """Pick a stream by kind name (``"pcg64"``, ``"lcg48"``) or pass a ready source."""
        if isinstance(rng, str):
            return self._set(rng=rng)
        self._set()
        self._rng = rng
        return self

    def _consume(self) -> Dict[str, Any]:
        if self._consumed:
            log.error("build() called twice", builder=self._kind)
            raise ConfigurationError(f"{self._kind} builder has already been built")
        missing = [name for name in ("width", "height") if name not in self._options]
        if missing:
            log.error("Builder is missing dimensions", builder=self._kind, missing=missing)
            raise ConfigurationError(f"{self._kind} builder needs {' and '.join(missing)}")
        return dict(self._options)


class CaveBuilder(_GeneratorBuilder):
    _kind = "cave"

    def __init__(self) -> None:
        super().__init__()
        self._phases: List[CavePhase] = []

    def add_phase(self, min_count: int, max_count: int, rounds: int) -> "CaveBuilder":
        self._set()
        self._phases.append(CavePhase(min_count, max_count, rounds))
        return self

    def with_fill_probability(self, probability: float) -> "CaveBuilder":
        return self._set(fill_probability=probability)

    def build(self) -> CaveGenerator:
        options = self._consume()
        config = CaveConfig(phases=tuple(self._phases), **options).validate()
        generator = CaveGenerator(config, rng=self._rng)
        self._consumed = True
        return generator


class ForestBuilder(_GeneratorBuilder):
    _kind = "forest"

    def with_initial_trees(self, count: int) -> "ForestBuilder":
        return self._set(initial_trees=count)

    def with_seed_params(self, radius: int, decay: float, strength: float) -> "ForestBuilder":
        return self._set(seed_radius=radius, seed_decay=decay, seed_strength=strength)

    def with_desired_coverage(self, coverage: float) -> "ForestBuilder":
        return self._set(desired_coverage=coverage)

    def with_max_steps(self, max_steps: Optional[int]) -> "ForestBuilder":
        return self._set(max_steps=max_steps)

    def build(self) -> ForestGenerator:
        options = self._consume()
        config = ForestConfig(**options).validate()
        generator = ForestGenerator(config, rng=self._rng)
        self._consumed = True
        return generator


__all__ = ["CaveBuilder", "ForestBuilder"]
