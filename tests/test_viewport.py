"""Tests for viewport computation."""

from areatiler.tiling.rect import Rect
from areatiler.tiling.screen import ScreenAreas
from areatiler.tiling.viewport import compute_viewports

from helpers import H, S, V, add_leaf, add_row, row_of


def nested():
    areas = ScreenAreas()
    for leaf in "ABCD":
        add_leaf(areas, leaf)
    add_row(areas, "stk", S, ["C", "D"], active_tab_id="D")
    add_row(areas, "col", V, ["B", "stk"])
    add_row(areas, "root", H, ["A", "col"])
    areas.root_id = "root"
    return areas


class TestComputeViewports:
    """Tests for recursive subdivision."""

    def test_horizontal_row(self):
        areas = row_of(H, "A", "B")
        vp = compute_viewports(areas.layout, "R", Rect(0, 0, 300, 200))
        assert vp["R"] == Rect(0, 0, 300, 200)
        assert vp["A"] == Rect(0, 0, 150, 200)
        assert vp["B"] == Rect(150, 0, 150, 200)

    def test_vertical_row(self):
        areas = row_of(V, "A", "B", sizes=[0.25, 0.75])
        vp = compute_viewports(areas.layout, "R", Rect(0, 0, 300, 200))
        assert vp["A"] == Rect(0, 0, 300, 50)
        assert vp["B"] == Rect(0, 50, 300, 150)

    def test_stack_children_share_the_row_rect(self):
        """Test every tab keeps a rectangle, not only the visible one."""
        areas = row_of(S, "A", "B", "C")
        vp = compute_viewports(areas.layout, "R", Rect(10, 10, 300, 200))
        assert vp["A"] == vp["B"] == vp["C"] == vp["R"] == Rect(10, 10, 300, 200)

    def test_nested(self):
        areas = nested()
        vp = compute_viewports(areas.layout, "root", Rect(0, 0, 400, 300))
        assert vp["A"] == Rect(0, 0, 200, 300)
        assert vp["col"] == Rect(200, 0, 200, 300)
        assert vp["B"] == Rect(200, 0, 200, 150)
        assert vp["stk"] == Rect(200, 150, 200, 150)
        assert vp["C"] == vp["D"] == vp["stk"]

    def test_floor_rounding_gives_remainder_to_last_child(self):
        areas = row_of(H, "A", "B", "C")
        vp = compute_viewports(areas.layout, "R", Rect(0, 0, 1000, 100))
        assert [vp[i].w for i in "ABC"] == [333, 333, 334]
        assert vp["C"].right == 1000

    def test_deterministic(self):
        """Test identical inputs give identical output, key order included."""
        areas = nested()
        first = compute_viewports(areas.layout, "root", Rect(0, 0, 1234, 567))
        second = compute_viewports(areas.layout, "root", Rect(0, 0, 1234, 567))
        assert list(first.items()) == list(second.items())
        assert list(first) == ["root", "A", "col", "B", "stk", "C", "D"]

    def test_no_container_or_root(self):
        areas = row_of(H, "A", "B")
        assert compute_viewports(areas.layout, "R", None) == {}
        assert compute_viewports(areas.layout, "R", Rect(0, 0, 0, 100)) == {}
        assert compute_viewports(areas.layout, None, Rect(0, 0, 10, 10)) == {}
        assert compute_viewports({}, "R", Rect(0, 0, 10, 10)) == {}

    def test_missing_child_is_skipped(self):
        areas = row_of(H, "A", "B")
        del areas.layout["B"]
        vp = compute_viewports(areas.layout, "R", Rect(0, 0, 300, 200))
        assert set(vp) == {"R", "A"}
