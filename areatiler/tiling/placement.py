"""
areatiler.tiling.placement - Drop target resolution.

Implements the read-only geometric queries used while an area is being
dragged:
    - Hovered target (resolve_hovered_target): which leaf or stack the
      pointer is over, or the nearest one by edge distance.
    - Placement region (resolve_placement_region): which edge of the
      target rectangle (or its centre, for stacking) the pointer indicates.
    - Join candidates (join_candidates): which siblings an area can be
      joined with when dragged towards a direction.

None of these functions mutate the layout.
"""

from __future__ import annotations

import enum
import logging
from typing import Mapping, Optional

from areatiler.config.defaults import DETECTION_DIVISOR, STACK_ZONE_RATIO
from areatiler.tiling.rect import Rect
from areatiler.tiling.tree import AreaNode, Node, Orientation, RowNode, get_parent_row_of
from areatiler.tiling.vec2 import Vec2

log = logging.getLogger(__name__)


class Direction(enum.Enum):
    """Cardinal directions for join/move operations."""
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"

    @property
    def axis(self) -> Orientation:
        if self in (Direction.LEFT, Direction.RIGHT):
            return Orientation.HORIZONTAL
        return Orientation.VERTICAL

    @property
    def step(self) -> int:
        """Index delta along a row: -1 towards the start, +1 towards the end."""
        return -1 if self in (Direction.LEFT, Direction.UP) else 1


class PlacementRegion(enum.Enum):
    """Where a dropped area goes relative to its target."""
    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"
    STACK = "stack"

    @property
    def orientation(self) -> Orientation:
        """Row orientation that a split in this region produces."""
        if self in (PlacementRegion.TOP, PlacementRegion.BOTTOM):
            return Orientation.VERTICAL
        if self is PlacementRegion.STACK:
            return Orientation.STACK
        return Orientation.HORIZONTAL

    @property
    def inserts_after(self) -> bool:
        """True if the new area goes after the target in reading order."""
        return self in (PlacementRegion.BOTTOM, PlacementRegion.RIGHT)


def _is_drop_candidate(node: Node | None) -> bool:
    """Only leaves and stacks can receive a drop."""
    if isinstance(node, AreaNode):
        return True
    return isinstance(node, RowNode) and node.is_stack


def resolve_hovered_target(
    position: Vec2,
    viewports: Mapping[str, Rect],
    layout: Mapping[str, Node],
    detection_size: Vec2 | None = None,
) -> Optional[str]:
    """
    Find the leaf or stack the pointer designates.

    The algorithm:
        1. If detection_size is given, probe at position + detection_size / 15
           (the centre of the drag preview rather than its corner).
        2. Among leaves and stacks, a rectangle containing the probe is a
           direct hit. A stack hit wins over a leaf hit.
        3. Without a direct hit, pick the rectangle whose nearest edge is
           closest to the probe.

    Ties keep the first candidate found in viewport iteration order.

    Args:
        position:       Pointer position.
        viewports:      Current id -> Rect map.
        layout:         Current layout map.
        detection_size: Size of the dragged preview, if any.

    Returns:
        The target id, or None only when there are no candidates.
    """
    probe = position
    if detection_size is not None:
        probe = Vec2(
            position.x + detection_size.x / DETECTION_DIVISOR,
            position.y + detection_size.y / DETECTION_DIVISOR,
        )

    hovered_stack: Optional[str] = None
    hovered_leaf: Optional[str] = None
    closest: Optional[str] = None
    best_distance = float("inf")

    for node_id, rect in viewports.items():
        node = layout.get(node_id)
        if not _is_drop_candidate(node):
            continue

        if rect.contains(probe):
            if isinstance(node, RowNode):
                if hovered_stack is None:
                    hovered_stack = node_id
            elif hovered_leaf is None:
                hovered_leaf = node_id
            continue

        distance = rect.nearest_edge_distance(probe)
        if distance < best_distance:
            best_distance = distance
            closest = node_id

    target = hovered_stack or hovered_leaf or closest
    log.debug(
        "hover %s -> %s (stack=%s leaf=%s closest=%s)",
        probe,
        target,
        hovered_stack,
        hovered_leaf,
        closest,
    )
    return target


def resolve_placement_region(
    target: Rect,
    position: Vec2,
    stack_zone_ratio: float = STACK_ZONE_RATIO,
) -> PlacementRegion:
    """
    Classify the pointer position inside the target rectangle.

    A centred rectangular zone (half-extent stack_zone_ratio of the width
    on X and of the height on Y, checked independently) means STACK.
    Otherwise the closest edge wins; exact ties resolve in the order
    left, right, top, bottom.
    """
    rel_x = position.x - target.left
    rel_y = position.y - target.top

    to_left = rel_x
    to_right = target.width - rel_x
    to_top = rel_y
    to_bottom = target.height - rel_y

    off_center_x = abs(rel_x - target.width / 2)
    off_center_y = abs(rel_y - target.height / 2)

    if (
        off_center_x < target.width * stack_zone_ratio
        and off_center_y < target.height * stack_zone_ratio
    ):
        return PlacementRegion.STACK

    nearest = min(to_left, to_right, to_top, to_bottom)
    if nearest == to_left:
        return PlacementRegion.LEFT
    if nearest == to_right:
        return PlacementRegion.RIGHT
    if nearest == to_top:
        return PlacementRegion.TOP
    return PlacementRegion.BOTTOM


def join_candidates(
    layout: Mapping[str, Node],
    area_id: str,
    direction: Direction,
) -> list[str]:
    """
    Siblings that *area_id* could absorb when dragged towards *direction*.

    Only the immediate neighbour along the parent row's axis qualifies;
    rows of the other axis, stacks and the root have no candidates.
    """
    parent = get_parent_row_of(layout, area_id)
    if parent is None or parent.orientation is not direction.axis:
        return []

    index = parent.index_of(area_id)
    neighbour = index + direction.step
    if 0 <= neighbour < len(parent.children):
        return [parent.children[neighbour].id]
    return []
