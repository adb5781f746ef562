"""Tests for the layout tree model and its accessors."""

from areatiler.tiling.screen import ScreenAreas
from areatiler.tiling.tree import (
    RowChild,
    collect_leaf_ids,
    compute_parent_map,
    find_first_leaf_under,
    get_node_by_id,
    get_parent_row_of,
    validate_tree,
)

from helpers import H, S, V, add_leaf, add_row, row_of, single


def nested():
    """H[A, V[B, S[C, D]]] with D the active tab."""
    areas = ScreenAreas()
    for leaf in "ABCD":
        add_leaf(areas, leaf)
    add_row(areas, "stk", S, ["C", "D"], active_tab_id="D")
    add_row(areas, "col", V, ["B", "stk"])
    add_row(areas, "root", H, ["A", "col"])
    areas.root_id = "root"
    return areas


class TestAccessors:
    """Tests for structural accessors."""

    def test_get_node_by_id(self):
        areas = nested()
        assert get_node_by_id(areas.layout, "A").id == "A"
        assert get_node_by_id(areas.layout, "nope") is None
        assert get_node_by_id(areas.layout, None) is None

    def test_parent_map(self):
        parents = compute_parent_map(nested().layout)
        assert parents == {
            "A": "root",
            "col": "root",
            "B": "col",
            "stk": "col",
            "C": "stk",
            "D": "stk",
        }

    def test_parent_row_of(self):
        areas = nested()
        assert get_parent_row_of(areas.layout, "C").id == "stk"
        assert get_parent_row_of(areas.layout, "root") is None

    def test_first_leaf_prefers_active_tab(self):
        """Test descent into a stack picks the visible tab."""
        areas = nested()
        assert find_first_leaf_under(areas.layout, "stk") == "D"
        assert find_first_leaf_under(areas.layout, "col") == "B"
        assert find_first_leaf_under(areas.layout, "A") == "A"
        assert find_first_leaf_under(areas.layout, "missing") is None

    def test_collect_leaf_ids_in_reading_order(self):
        assert collect_leaf_ids(nested().layout, "root") == ["A", "B", "C", "D"]
        assert collect_leaf_ids(nested().layout, None) == []

    def test_index_of_and_serialization(self):
        areas = nested()
        stk = areas.layout["stk"]
        assert stk.index_of("D") == 1
        assert stk.index_of("A") == -1
        data = stk.to_dict()
        assert data["kind"] == "row"
        assert data["orientation"] == "stack"
        assert data["activeTabId"] == "D"
        assert areas.layout["A"].to_dict() == {"kind": "area", "id": "A"}


class TestValidateTree:
    """Tests for invariant checking."""

    def test_valid_trees(self):
        assert validate_tree(nested().layout, "root") == []
        assert validate_tree(single().layout, "A") == []
        assert validate_tree({}, None) == []

    def test_singleton_row(self):
        areas = row_of(H, "A", "B")
        del areas.layout["R"].children[1]
        areas.layout["R"].children[0].size = 1.0
        del areas.layout["B"]
        problems = validate_tree(areas.layout, "R")
        assert any("has 1 children" in p for p in problems)

    def test_bad_size_sum(self):
        areas = row_of(H, "A", "B", sizes=[0.5, 0.4])
        assert any("sizes sum" in p for p in validate_tree(areas.layout, "R"))

    def test_missing_reference(self):
        areas = row_of(H, "A", "B")
        del areas.layout["B"]
        assert any("missing node B" in p for p in validate_tree(areas.layout, "R"))

    def test_shared_child(self):
        areas = row_of(H, "A", "B")
        add_row(areas, "R2", V, ["A", "B"])
        areas.layout["R"].children.append(RowChild("R2", 0.0))
        problems = validate_tree(areas.layout, "R")
        assert any("shared" in p for p in problems)

    def test_unreachable_node(self):
        areas = row_of(H, "A", "B")
        add_leaf(areas, "Z")
        assert "node Z is unreachable from root" in validate_tree(areas.layout, "R")

    def test_root_consistency(self):
        areas = single()
        assert validate_tree(areas.layout, None) != []
        assert validate_tree({}, "A") != []

    def test_stack_active_tab(self):
        areas = row_of(S, "A", "B")
        areas.layout["R"].active_tab_id = "Z"
        assert any("active tab" in p for p in validate_tree(areas.layout, "R"))
