"""Tests for Vec2 and Rect."""

import pytest

from areatiler.tiling.rect import Rect
from areatiler.tiling.vec2 import Vec2


class TestVec2:
    """Tests for the Vec2 value type."""

    def test_of_accepts_common_shapes(self):
        """Test normalization from tuples and dicts."""
        assert Vec2.of((1, 2)) == Vec2(1, 2)
        assert Vec2.of({"x": 3, "y": 4}) == Vec2(3, 4)
        assert Vec2.of({"left": 5, "top": 6}) == Vec2(5, 6)
        v = Vec2(7, 8)
        assert Vec2.of(v) is v

    def test_arithmetic(self):
        """Test add, sub, scale and lerp return new vectors."""
        a = Vec2(2, 4)
        b = Vec2(1, 1)
        assert a.add(b) == Vec2(3, 5)
        assert a.sub(b) == Vec2(1, 3)
        assert a.scale(2) == Vec2(4, 8)
        assert a.scale(2, anchor=Vec2(2, 4)) == a
        assert a.lerp(Vec2(4, 8), 0.5) == Vec2(3, 6)
        assert Vec2(3, 4).length() == 5

    def test_frozen(self):
        """Test vectors are immutable."""
        with pytest.raises(Exception):
            Vec2(1, 2).x = 5


class TestRect:
    """Tests for Rect geometry."""

    def test_edges(self):
        r = Rect(10, 20, 100, 50)
        assert (r.left, r.top, r.right, r.bottom) == (10, 20, 110, 70)
        assert r.center == Vec2(60, 45)
        assert r.to_ltrb() == (10, 20, 110, 70)
        assert Rect.from_ltrb(10, 20, 110, 70) == r

    def test_contains_is_inclusive(self):
        """Test points on the border count as inside."""
        r = Rect(0, 0, 100, 100)
        assert r.contains(Vec2(0, 0))
        assert r.contains(Vec2(100, 100))
        assert r.contains(Vec2(50, 100))
        assert not r.contains(Vec2(100.5, 50))

    def test_edge_distances(self):
        r = Rect(0, 0, 100, 50)
        assert r.edge_distances(Vec2(10, 20)) == (10, 90, 20, 30)
        assert r.nearest_edge_distance(Vec2(10, 20)) == 10
        # Outside points measure to the edge lines
        assert r.nearest_edge_distance(Vec2(120, 25)) == 20

    def test_slice_weighted_floors_and_gives_remainder_to_last(self):
        """Test floor rounding with the leftover on the last strip."""
        parts = Rect(0, 0, 100, 10).slice_weighted([1, 1, 1], horizontal=True)
        assert [p.w for p in parts] == [33, 33, 34]
        assert [p.x for p in parts] == [0, 33, 66]
        assert sum(p.w for p in parts) == 100

    def test_slice_weighted_vertical(self):
        parts = Rect(5, 10, 40, 101).slice_weighted([0.5, 0.5], horizontal=False)
        assert parts == [Rect(5, 10, 40, 50), Rect(5, 60, 40, 51)]

    def test_slice_weighted_without_useful_weights_splits_equally(self):
        parts = Rect(0, 0, 100, 10).slice_weighted([0, 0, 0], horizontal=True)
        assert [p.w for p in parts] == [33, 33, 34]

    def test_slice_weighted_empty(self):
        assert Rect(0, 0, 10, 10).slice_weighted([], horizontal=True) == []

    def test_dict_round_shape(self):
        """Test the {left, top, width, height} shape used by the renderer."""
        r = Rect.of({"left": 1, "top": 2, "width": 3, "height": 4})
        assert r == Rect(1, 2, 3, 4)
        assert r.to_dict() == {"left": 1, "top": 2, "width": 3, "height": 4}
        assert Rect.of((1, 2, 3, 4)) == r

    def test_is_empty(self):
        assert Rect(0, 0, 0, 10).is_empty
        assert not Rect(0, 0, 1, 1).is_empty
