import pytest

from mapgen.geometry import MOORE_HOOD, VON_NEUMANN_HOOD, Point, moore_index, sign


def test_point_arithmetic():
    a = Point(3, -2)
    b = Point(-1, 5)
    assert a.add(b) == Point(2, 3)
    assert a.subtract(b) == Point(4, -7)
    assert Point(-4, 2).abs() == Point(4, 2)
    assert a.translate(1, 1) == Point(4, -1)


def test_point_is_a_value_type():
    seen = {Point(1, 2): "a"}
    assert seen[Point(1, 2)] == "a"
    assert Point(1, 2) == (1, 2)
    assert str(Point(1, 2)) == "[1,2]"


def test_wrap_clamps_both_directions():
    assert Point(5, -7).wrap() == Point(1, -1)
    assert Point(-3, 4).wrap() == Point(-1, 1)
    assert Point(0, -1).wrap() == Point(0, -1)


def test_valid_is_half_open():
    assert Point(0, 0).valid(0, 5, 0, 5)
    assert Point(4, 4).valid(0, 5, 0, 5)
    assert not Point(5, 4).valid(0, 5, 0, 5)
    assert not Point(-1, 0).valid(0, 5, 0, 5)


def test_sign():
    assert [sign(v) for v in (-9, 0, 12)] == [-1, 0, 1]


def test_moore_index_matches_neighbourhood_order():
    for index, offset in enumerate(MOORE_HOOD):
        assert moore_index(offset.x, offset.y) == index
    # Clockwise from north-west
    assert MOORE_HOOD[0] == Point(-1, -1)
    assert MOORE_HOOD[3] == Point(1, 0)
    assert MOORE_HOOD[7] == Point(-1, 0)


def test_moore_index_rejects_centre_and_far_offsets():
    with pytest.raises(ValueError):
        moore_index(0, 0)
    with pytest.raises(ValueError):
        moore_index(2, 0)


def test_von_neumann_order():
    assert VON_NEUMANN_HOOD == (Point(0, -1), Point(-1, 0), Point(1, 0), Point(0, 1))
