import numpy as np
import pytest

from common.constants import FOREST, FOREST_EMPTY, SEEDED
from mapgen.config import ForestConfig
from mapgen.errors import MapGenError
from mapgen.forest import ForestGenerator, Span
from mapgen.geometry import Point

FOOTPRINT_10X10 = [
    "fff.......",
    "ffff......",
    "fff.f.....",
    ".f.fff....",
    "..fffff...",
    "...fff....",
    "....f.....",
    ".........f",
    "........ff",
    ".......fff",
]


class FixedRNG:
    """Random source that always returns the same draw."""

    def __init__(self, value=0.0):
        self.value = value

    def next_double(self):
        return self.value

    def next_int(self, bound):
        return 0

    def reseed(self, seed):
        pass


def _make_forest(width, height, **kwargs):
    return ForestGenerator(ForestConfig(width, height, **kwargs))


def test_add_tree_footprint():
    forest = _make_forest(10, 10)
    forest.add_tree(1, 1)
    forest.add_tree(4, 4)
    forest.add_tree(9, 9)
    expected = np.array([[c == "f" for c in row] for row in FOOTPRINT_10X10])
    assert np.array_equal(forest.get_forest() == FOREST, expected)
    assert forest.trees == (Point(1, 1), Point(4, 4), Point(9, 9))


def test_coverage_after_one_tree():
    forest = _make_forest(5, 5)
    forest.add_tree(1, 1)
    assert forest.coverage() == pytest.approx(0.44, abs=1e-4)
    assert forest.get_coverage() == forest.coverage()


def test_add_tree_outside_forest():
    forest = _make_forest(5, 5)
    with pytest.raises(MapGenError):
        forest.add_tree(5, 0)
    assert forest.trees == ()


def test_find_range_disc():
    forest = _make_forest(9, 9)
    spans = forest.find_range(4, 4, 3)
    assert spans == [
        Span(Point(1, 4), Point(7, 4)),
        Span(Point(2, 3), Point(6, 3)),
        Span(Point(2, 5), Point(6, 5)),
        Span(Point(2, 2), Point(6, 2)),
        Span(Point(2, 6), Point(6, 6)),
        Span(Point(4, 1), Point(4, 1)),
        Span(Point(4, 7), Point(4, 7)),
    ]
    assert spans[0].length == 7


def test_find_range_clips_to_forest():
    forest = _make_forest(5, 5)
    assert forest.find_range(0, 0, 2) == [
        Span(Point(0, 0), Point(2, 0)),
        Span(Point(0, 1), Point(1, 1)),
        Span(Point(0, 2), Point(0, 2)),
    ]
    assert forest.find_range(2, 2, 0) == [Span(Point(2, 2), Point(2, 2))]
    assert forest.find_range(7, 2, 3) == []


def test_initialize_plants_trees():
    forest = _make_forest(30, 30, initial_trees=4)
    forest.initialize()
    assert len(forest.trees) == 4
    assert forest.coverage() > 0
    assert forest.seeds == {}


def test_initialize_stops_when_forest_is_full():
    forest = _make_forest(2, 2, initial_trees=10)
    forest.initialize()
    assert len(forest.trees) == 1
    assert forest.coverage() == 1.0


def test_first_step_seeds_disc_around_tree():
    forest = _make_forest(15, 15, initial_trees=0, seed_radius=3, seed_strength=0.05)
    forest.add_tree(7, 7)
    forest.step()

    seeds = forest.seeds
    assert seeds
    assert list(seeds) == sorted(seeds, key=lambda p: (p.y, p.x))
    grid = forest.get_forest()
    for point, strength in seeds.items():
        assert grid[point.y, point.x] == SEEDED
        assert strength == pytest.approx(0.05)
    assert Point(7, 7) not in seeds


def test_step_sprouts_and_dedups():
    forest = ForestGenerator(
        ForestConfig(15, 15, initial_trees=0, seed_radius=4, seed_decay=0.0),
        rng=FixedRNG(0.0),
    )
    forest.add_tree(7, 7)
    forest.step()
    assert forest.seeds
    forest.step()

    assert len(forest.trees) > 1
    seeds = forest.seeds
    assert not any(tree in seeds for tree in forest.trees)


def test_seed_strength_decays_then_accumulates():
    forest = ForestGenerator(
        ForestConfig(15, 15, initial_trees=0, seed_radius=4, seed_decay=0.2, seed_strength=0.05),
        rng=FixedRNG(1.0),
    )
    forest.add_tree(7, 7)
    forest.step()
    assert forest.seeds[Point(7, 3)] == pytest.approx(0.05)
    forest.step()
    # Decayed once, then topped up by the second emission
    assert forest.seeds[Point(7, 3)] == pytest.approx(0.05 * 0.8 + 0.05)
    assert forest.trees == (Point(7, 7),)


def test_overlapping_discs_add_strength():
    forest = ForestGenerator(
        ForestConfig(15, 15, initial_trees=0, seed_radius=4, seed_strength=0.05),
        rng=FixedRNG(1.0),
    )
    forest.add_tree(4, 7)
    forest.add_tree(10, 7)
    forest.step()

    seeds = forest.seeds
    assert seeds[Point(7, 7)] == pytest.approx(0.1)
    assert seeds[Point(1, 7)] == pytest.approx(0.05)
    assert seeds[Point(13, 7)] == pytest.approx(0.05)


def test_remove_seeds():
    forest = _make_forest(15, 15, initial_trees=0, seed_radius=3)
    forest.add_tree(7, 7)
    forest.step()
    forest.remove_seeds()
    assert not np.any(forest.get_forest() == SEEDED)


def test_generate_reaches_coverage_without_seeds():
    forest = _make_forest(
        40,
        30,
        seed=11,
        initial_trees=5,
        seed_radius=4,
        seed_decay=0.1,
        seed_strength=0.05,
        desired_coverage=0.3,
        max_steps=300,
    )
    grid = forest.generate()
    assert not np.any(grid == SEEDED)
    assert forest.coverage() >= 0.3 or forest.cap_reached or forest.stalled
    assert forest.seeds == {}
    assert forest.steps_taken > 0


def test_generation_is_deterministic():
    kwargs = dict(seed=21, initial_trees=6, seed_radius=4, desired_coverage=0.35, max_steps=200)
    first = np.array(_make_forest(32, 24, **kwargs).generate())
    second = np.array(_make_forest(32, 24, **kwargs).generate())
    assert np.array_equal(first, second)


def test_generate_stalls_without_trees():
    forest = _make_forest(20, 20, initial_trees=0)
    grid = forest.generate()
    assert forest.stalled
    assert forest.steps_taken == 1
    assert np.all(grid == FOREST_EMPTY)


def test_generate_stalls_when_seeds_cannot_sprout():
    forest = _make_forest(30, 30, initial_trees=1, seed_strength=0.0, desired_coverage=0.9)
    forest.generate()
    assert forest.stalled
    assert not forest.cap_reached


def test_generate_honours_step_cap():
    forest = _make_forest(20, 20, initial_trees=1, desired_coverage=0.9, max_steps=0)
    forest.generate()
    assert forest.cap_reached
    assert forest.steps_taken == 0


def test_generate_with_zero_coverage_takes_no_steps():
    forest = _make_forest(10, 10, initial_trees=2, desired_coverage=0.0)
    forest.generate()
    assert forest.steps_taken == 0
    assert len(forest.trees) == 2


def test_forest_view_is_read_only():
    forest = _make_forest(5, 5)
    view = forest.get_forest()
    with pytest.raises(ValueError):
        view[0, 0] = FOREST


def test_reseed():
    forest = _make_forest(25, 25, initial_trees=3, desired_coverage=0.2, max_steps=100)
    forest.reseed(99)
    reseeded = np.array(forest.generate())
    expected = np.array(
        _make_forest(25, 25, seed=99, initial_trees=3, desired_coverage=0.2, max_steps=100).generate()
    )
    assert np.array_equal(reseeded, expected)
