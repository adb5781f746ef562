"""Tree builders shared by the tests."""

from areatiler.tiling.rect import Rect
from areatiler.tiling.screen import ScreenAreas
from areatiler.tiling.tree import (
    Area,
    AreaNode,
    AreaRole,
    Orientation,
    RowChild,
    RowNode,
    validate_tree,
)
from areatiler.tiling.viewport import compute_viewports

H = Orientation.HORIZONTAL
V = Orientation.VERTICAL
S = Orientation.STACK


def add_leaf(areas, area_id, role=AreaRole.SELF, area_type="text-note", state=None):
    """Register an area and its leaf node (not attached to any row)."""
    areas.areas[area_id] = Area(area_id, area_type, role, dict(state or {}))
    areas.layout[area_id] = AreaNode(area_id)
    return area_id


def add_row(areas, row_id, orientation, children, active_tab_id=None):
    """
    Register a row. children is a list of ids (equal sizes) or of
    (id, size) pairs.
    """
    if children and isinstance(children[0], tuple):
        row_children = [RowChild(cid, size) for cid, size in children]
    else:
        row_children = [RowChild(cid, 1.0 / len(children)) for cid in children]
    if orientation is S and active_tab_id is None:
        active_tab_id = row_children[0].id
    areas.layout[row_id] = RowNode(row_id, orientation, row_children, active_tab_id)
    return row_id


def single(area_id="A", role=AreaRole.SELF):
    """Screen state with one root leaf."""
    areas = ScreenAreas()
    add_leaf(areas, area_id, role)
    areas.root_id = area_id
    areas.active_area_id = area_id
    return areas


def row_of(orientation, *leaf_ids, row_id="R", sizes=None):
    """Screen state whose root is a row of leaves."""
    areas = ScreenAreas()
    for leaf in leaf_ids:
        add_leaf(areas, leaf)
    if sizes is None:
        add_row(areas, row_id, orientation, list(leaf_ids))
    else:
        add_row(areas, row_id, orientation, list(zip(leaf_ids, sizes)))
    areas.root_id = row_id
    areas.active_area_id = leaf_ids[0]
    return areas


def with_viewports(areas, rect=Rect(0, 0, 300, 200)):
    areas.viewports = compute_viewports(areas.layout, areas.root_id, rect)
    return areas


def assert_valid(areas):
    problems = validate_tree(areas.layout, areas.root_id)
    assert problems == [], problems


def sizes(areas, row_id):
    return [c.size for c in areas.layout[row_id].children]


def child_ids(areas, row_id):
    return areas.layout[row_id].child_ids
