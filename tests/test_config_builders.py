import dataclasses

import pytest

from map_rng import GameRNG, Lcg48Random
from mapgen.builders import CaveBuilder, ForestBuilder
from mapgen.cave import CaveGenerator
from mapgen.config import CaveConfig, CavePhase, ForestConfig
from mapgen.errors import ConfigurationError
from mapgen.forest import ForestGenerator


def test_cave_builder_builds_generator():
    cave = (
        CaveBuilder()
        .with_size(60, 40)
        .with_seed(1410187129987)
        .add_phase(5, 2, 4)
        .add_phase(5, -1, 5)
        .build()
    )
    assert isinstance(cave, CaveGenerator)
    assert (cave.width, cave.height) == (60, 40)
    assert cave.seed == 1410187129987
    assert cave.phases == (CavePhase(5, 2, 4), CavePhase(5, -1, 5))
    assert isinstance(cave.rng, GameRNG)


def test_cave_builder_defaults():
    cave = CaveBuilder().with_width(10).with_height(8).build()
    assert cave.seed == 7
    assert cave.phases == ()
    assert cave.config.fill_probability == 0.4


def test_builder_is_single_use():
    builder = CaveBuilder().with_size(10, 10)
    builder.build()
    with pytest.raises(ConfigurationError):
        builder.build()
    with pytest.raises(ConfigurationError):
        builder.with_seed(3)
    with pytest.raises(ConfigurationError):
        builder.add_phase(5, 2, 1)


def test_builder_requires_dimensions():
    with pytest.raises(ConfigurationError):
        CaveBuilder().with_width(10).build()
    with pytest.raises(ConfigurationError):
        ForestBuilder().build()


def test_failed_build_can_be_corrected():
    builder = CaveBuilder().with_size(2, 10)
    with pytest.raises(ConfigurationError):
        builder.build()
    assert isinstance(builder.with_width(5).build(), CaveGenerator)


def test_forest_builder():
    forest = (
        ForestBuilder()
        .with_size(240, 160)
        .with_seed(4)
        .with_initial_trees(20)
        .with_seed_params(7, 0.1, 0.05)
        .with_desired_coverage(0.3)
        .with_max_steps(50)
        .with_rng("lcg48")
        .build()
    )
    assert isinstance(forest, ForestGenerator)
    config = forest.config
    assert (config.seed_radius, config.seed_decay, config.seed_strength) == (7, 0.1, 0.05)
    assert config.desired_coverage == 0.3
    assert config.max_steps == 50
    assert isinstance(forest.rng, Lcg48Random)


def test_builder_accepts_random_source():
    rng = Lcg48Random(1)
    forest = ForestBuilder().with_size(4, 4).with_rng(rng).build()
    assert forest.rng is rng


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(width=2, height=10),
        dict(width=10, height=0),
        dict(width=10, height=10, seed=-1),
        dict(width=10, height=10, phases=((5, 2, -1),)),
        dict(width=10, height=10, fill_probability=1.5),
        dict(width=10, height=10, rng="mt19937"),
        dict(width=True, height=10),
    ],
)
def test_invalid_cave_config(kwargs):
    with pytest.raises(ConfigurationError):
        CaveConfig(**kwargs).validate()


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(width=0, height=10),
        dict(width=10, height=10, initial_trees=-1),
        dict(width=10, height=10, seed_radius=-2),
        dict(width=10, height=10, seed_decay=1.2),
        dict(width=10, height=10, seed_strength=-0.1),
        dict(width=10, height=10, desired_coverage=2),
        dict(width=10, height=10, max_steps=-5),
    ],
)
def test_invalid_forest_config(kwargs):
    with pytest.raises(ConfigurationError):
        ForestConfig(**kwargs).validate()


def test_configuration_error_is_value_error():
    with pytest.raises(ValueError):
        ForestBuilder().with_size(1, 1).with_desired_coverage(-1).build()


def test_configs_are_frozen():
    config = ForestConfig(5, 5)
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.width = 6


def test_cave_config_from_mapping():
    config = CaveConfig.from_mapping(
        {
            "width": 60,
            "height": 40,
            "seed": 9,
            "phases": [{"min_count": 5, "max_count": 2, "rounds": 4}, [5, -1, 5]],
        }
    )
    assert config.phases == (CavePhase(5, 2, 4), CavePhase(5, -1, 5))
    assert config.rng == "pcg64"


def test_from_mapping_rejects_unknown_and_missing_keys():
    with pytest.raises(ConfigurationError):
        CaveConfig.from_mapping({"width": 10, "height": 10, "smoothing": 3})
    with pytest.raises(ConfigurationError):
        ForestConfig.from_mapping({"width": 10})
    with pytest.raises(ConfigurationError):
        CaveConfig.from_mapping({"width": 10, "height": 10, "phases": [[5, 2]]})


def test_forest_config_from_mapping():
    config = ForestConfig.from_mapping(
        {"width": 30, "height": 20, "initial_trees": 3, "max_steps": None}
    )
    assert config.initial_trees == 3
    assert config.seed_radius == 5
    assert config.max_steps is None
