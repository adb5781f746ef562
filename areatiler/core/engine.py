"""
areatiler.core.engine - LayoutEngine: the public facade and transaction boundary.

This is the only entry point the rendering collaborator talks to.
LayoutEngine:

  1. Owns a ScreenManager (the independent layout trees) and an
     AreaTypeRegistry (injected, used to resolve area roles).
  2. Runs every mutation as a copy-on-write transaction: the active
     screen's state is deep-copied, the draft is mutated, and only a
     fully successful draft is published.  Readers never observe a
     half-applied change.
  3. Converts every failure into an entry of the screen's error log.
     Nothing raises across the public boundary.
  4. Recomputes viewports after each commit (or once per batch) and
     notifies subscribers.
"""

from __future__ import annotations

import contextlib
import copy
import dataclasses
import enum
import logging
import math
from collections.abc import Callable, Iterator, Mapping, Sequence
from typing import Any, Optional, TypeVar

from areatiler.config.defaults import EngineOptions
from areatiler.core.errors import LayoutError, NodeNotFoundError, PolicyError, StructuralError
from areatiler.core.registry import AreaTypeRegistry
from areatiler.tiling import operations
from areatiler.tiling.finalizer import (
    AreaDescriptor,
    AreaToOpen,
    PlacementPhase,
    finalize_placement,
)
from areatiler.tiling.placement import (
    Direction,
    PlacementRegion,
    join_candidates,
    resolve_hovered_target,
    resolve_placement_region,
)
from areatiler.tiling.rect import Rect
from areatiler.tiling.screen import JoinPreview, Screen, ScreenAreas, SplitResult
from areatiler.tiling.screen_manager import ScreenManager
from areatiler.tiling.tree import Area, AreaNode, AreaRole, Orientation, RowNode, validate_tree
from areatiler.tiling.vec2 import Vec2
from areatiler.tiling.viewport import compute_viewports

log = logging.getLogger(__name__)

T = TypeVar("T")
E = TypeVar("E", bound=enum.Enum)


# ============================================================================
# Event types emitted by LayoutEngine
# ============================================================================
class EngineEvent(enum.Enum):
    """Events that the LayoutEngine can emit to subscribers."""

    # A screen's published state changed.  Payload: tuple of screen ids.
    STATE_CHANGED = "state_changed"

    # A screen was created (add, duplicate or detach).  Payload: screen id.
    SCREEN_ADDED = "screen_added"

    # A screen was removed.  Payload: screen id.
    SCREEN_REMOVED = "screen_removed"

    # The active screen changed.  Payload: (old id, new id).
    SCREEN_SWITCHED = "screen_switched"

    # A drag placement was committed.  Payload: placed area id.
    AREA_PLACED = "area_placed"

    # An error was appended to a screen's log.  Payload: message.
    ERROR_RECORDED = "error_recorded"


# Type alias for event callbacks.
# All callbacks receive (event, payload, engine).
EventCallback = Callable[["EngineEvent", Any, "LayoutEngine"], None]


def _coerce(enum_cls: type[E], value: E | str) -> E:
    """Accept an enum member or its string value."""
    try:
        return enum_cls(value)
    except ValueError:
        raise PolicyError(f"Invalid {enum_cls.__name__}: {value!r}") from None


# ============================================================================
# LayoutEngine
# ============================================================================
class LayoutEngine:
    """
    Facade over the screens and their layout trees.

    Usage:
        engine = LayoutEngine()
        engine.on(EngineEvent.STATE_CHANGED, redraw)
        engine.set_container_rect({"left": 0, "top": 0, "width": 1200, "height": 800})
        engine.split_area("area-1", "horizontal", "se")
    """

    def __init__(
        self,
        options: EngineOptions | None = None,
        registry: AreaTypeRegistry | None = None,
        container_rect: Rect | Mapping[str, float] | Sequence[float] | None = None,
    ) -> None:
        self._options = options or EngineOptions()
        self._registry = registry if registry is not None else AreaTypeRegistry()

        # Event subscribers: event -> list of callbacks
        self._subscribers: dict[EngineEvent, list[EventCallback]] = {
            ev: [] for ev in EngineEvent
        }

        # Batch nesting depth and screens touched while batching
        self._batch_depth = 0
        self._dirty: list[str] = []

        self._screens = ScreenManager(
            self._options,
            initial_role=self._registry.role_for(self._options.default_area_type),
        )
        self._screens.on_screen_changed(self._on_screen_switched)

        if container_rect is not None:
            self.set_container_rect(container_rect)

    # ------------------------------------------------------------------
    # Public: accessors
    # ------------------------------------------------------------------
    @property
    def options(self) -> EngineOptions:
        return self._options

    @property
    def registry(self) -> AreaTypeRegistry:
        return self._registry

    @property
    def screens(self) -> ScreenManager:
        return self._screens

    @property
    def active_screen_id(self) -> str:
        return self._screens.active_screen_id

    @property
    def active_screen(self) -> Screen:
        return self._screens.active_screen

    @property
    def state(self) -> ScreenAreas:
        """Published state of the active screen.  Treat as read-only."""
        return self._screens.active_screen.areas

    # ------------------------------------------------------------------
    # Public: event subscription
    # ------------------------------------------------------------------
    def on(self, event: EngineEvent, callback: EventCallback) -> None:
        """Register a callback for a specific event."""
        self._subscribers[event].append(callback)

    def off(self, event: EngineEvent, callback: EventCallback) -> None:
        """Unregister a callback."""
        try:
            self._subscribers[event].remove(callback)
        except ValueError:
            pass

    def on_all(self, callback: EventCallback) -> None:
        """Register a callback for ALL events."""
        for ev in EngineEvent:
            self._subscribers[ev].append(callback)

    def _emit(self, event: EngineEvent, payload: Any = None) -> None:
        for cb in self._subscribers[event]:
            try:
                cb(event, payload, self)
            except Exception:
                log.exception("Error in event callback for %s (%s)", event.value, payload)

    def _on_screen_switched(self, old_id: str, new_id: str) -> None:
        self._emit(EngineEvent.SCREEN_SWITCHED, (old_id, new_id))

    # ------------------------------------------------------------------
    # Public: batching
    # ------------------------------------------------------------------
    @contextlib.contextmanager
    def batch(self) -> Iterator[LayoutEngine]:
        """
        Group several operations into one viewport recomputation and one
        STATE_CHANGED notification.

        Usage:
            with engine.batch():
                engine.add_area("text-note")
                engine.add_area("text-note")
        """
        self._batch_depth += 1
        try:
            yield self
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._dirty:
                dirty, self._dirty = self._dirty, []
                for screen_id in dirty:
                    self._refresh_viewports(screen_id)
                self._emit(EngineEvent.STATE_CHANGED, tuple(dirty))

    def _changed(self, screen_id: str) -> None:
        if self._batch_depth:
            if screen_id not in self._dirty:
                self._dirty.append(screen_id)
            return
        self._emit(EngineEvent.STATE_CHANGED, (screen_id,))

    def _refresh_viewports(self, screen_id: str) -> None:
        screen = self._screens.get_screen(screen_id)
        if screen is None:
            return
        viewports = compute_viewports(
            screen.areas.layout, screen.areas.root_id, screen.container_rect
        )
        screen.areas = dataclasses.replace(screen.areas, viewports=viewports)

    # ------------------------------------------------------------------
    # Internal: transactions
    # ------------------------------------------------------------------
    def _transact(
        self,
        op_name: str,
        mutate: Callable[[ScreenAreas], T],
        screen_id: str | None = None,
        clear_pending: bool = False,
    ) -> Optional[T]:
        """
        Run *mutate* against a deep copy of a screen's state.

        On success the draft is published and the result returned.  On
        failure the published state is left as it was (apart from the
        error log, and area_to_open when *clear_pending*) and None is
        returned.
        """
        screen_id = screen_id or self._screens.active_screen_id
        screen = self._screens.get_screen(screen_id)
        if screen is None:
            self._record_error(f"Error in {op_name}: screen {screen_id} not found")
            return None

        draft = copy.deepcopy(screen.areas)
        try:
            result = mutate(draft)
        except LayoutError as exc:
            log.warning("%s rejected: %s", op_name, exc)
            self._record_error(str(exc), screen_id, clear_pending)
            return None
        except Exception as exc:
            log.exception("Error in %s", op_name)
            self._record_error(f"Error in {op_name}: {exc}", screen_id, clear_pending)
            return None

        self._commit(screen_id, draft)
        return result

    def _commit(self, screen_id: str, draft: ScreenAreas) -> None:
        screen = self._screens.require_screen(screen_id)
        if not self._batch_depth:
            draft.viewports = compute_viewports(
                draft.layout, draft.root_id, screen.container_rect
            )
        if self._options.validate_after_commit:
            for problem in validate_tree(
                draft.layout, draft.root_id, self._options.size_tolerance
            ):
                log.error("Invalid tree in screen %s: %s", screen_id, problem)
        self._screens.publish(screen_id, draft)
        self._changed(screen_id)

    def _record_error(
        self,
        message: str,
        screen_id: str | None = None,
        clear_pending: bool = False,
    ) -> None:
        screen_id = screen_id or self._screens.active_screen_id
        screen = self._screens.get_screen(screen_id)
        if screen is None:
            log.error("Dropped error for missing screen %s: %s", screen_id, message)
            return
        errors = list(screen.areas.errors)
        errors.append(message)
        del errors[: max(0, len(errors) - self._options.max_errors)]
        changes: dict[str, Any] = {"errors": errors}
        if clear_pending:
            changes["area_to_open"] = None
        screen.areas = dataclasses.replace(screen.areas, **changes)
        self._emit(EngineEvent.ERROR_RECORDED, message)
        self._changed(screen_id)

    # ------------------------------------------------------------------
    # Public: geometry
    # ------------------------------------------------------------------
    def set_container_rect(
        self,
        rect: Rect | Mapping[str, float] | Sequence[float] | None,
        screen_id: str | None = None,
    ) -> bool:
        """
        Store the root rectangle the collaborator renders a screen into
        and recompute that screen's viewports.
        """
        screen_id = screen_id or self._screens.active_screen_id
        screen = self._screens.get_screen(screen_id)
        if screen is None:
            log.warning("set_container_rect: screen %s not found", screen_id)
            return False
        try:
            container = Rect.of(rect) if rect is not None else None
            if container is not None and not all(map(math.isfinite, container.to_ltrb())):
                raise ValueError("non-finite coordinates")
        except (KeyError, TypeError, ValueError) as exc:
            error = PolicyError(f"Invalid container rect {rect!r}: {exc!r}")
            log.warning("set_container_rect rejected: %s", error)
            self._record_error(str(error), screen_id)
            return False
        screen.container_rect = container
        self._refresh_viewports(screen_id)
        log.debug("Container for screen %s: %s", screen_id, screen.container_rect)
        self._changed(screen_id)
        return True

    # ------------------------------------------------------------------
    # Public: structural operations
    # ------------------------------------------------------------------
    def split_area(
        self,
        target_id: str,
        orientation: Orientation | str,
        corner: str,
    ) -> Optional[SplitResult]:
        """Interactive split from a corner of an area.  Returns the SplitResult."""

        def mutate(draft: ScreenAreas) -> SplitResult:
            return operations.split_area(
                draft, target_id, _coerce(Orientation, orientation), corner
            )

        return self._transact("split_area", mutate)

    def join_or_move_area(
        self,
        source_id: str,
        target_id: str,
        direction: Direction | str,
    ) -> bool:
        """Join two adjacent areas: *target_id* disappears into *source_id*."""

        def mutate(draft: ScreenAreas) -> bool:
            operations.join_or_move_area(
                draft, source_id, target_id, _coerce(Direction, direction)
            )
            return True

        return bool(self._transact("join_or_move_area", mutate))

    def set_row_sizes(self, row_id: str, sizes: Sequence[float]) -> bool:
        """Assign normalized child sizes to a row."""

        def mutate(draft: ScreenAreas) -> bool:
            operations.set_child_sizes(draft, row_id, sizes)
            return True

        return bool(self._transact("set_row_sizes", mutate))

    def add_area(
        self,
        area_type: str,
        state: dict[str, Any] | None = None,
        role: AreaRole | str | None = None,
        area_id: str | None = None,
    ) -> Optional[str]:
        """Add an area at the end of the active screen's tree."""

        def mutate(draft: ScreenAreas) -> str:
            new_id = area_id or draft.next_id("area")
            area = Area(
                new_id,
                area_type,
                self._resolve_role(area_type, role),
                copy.deepcopy(state) if state is not None
                else self._registry.default_state_for(area_type),
            )
            operations.insert_area(draft, area)
            if draft.active_area_id is None:
                draft.active_area_id = new_id
            return new_id

        return self._transact("add_area", mutate)

    def remove_area(self, area_id: str) -> bool:
        """Remove an area; the last area of a screen cannot be removed."""

        def mutate(draft: ScreenAreas) -> bool:
            operations.remove_area(draft, area_id)
            return True

        return bool(self._transact("remove_area", mutate))

    def update_area(
        self,
        area_id: str,
        area_type: str | None = None,
        state: dict[str, Any] | None = None,
        role: AreaRole | str | None = None,
    ) -> bool:
        """
        Change an area's type, state or role in place.

        When the type changes and no role is given, the role is resolved
        again from the registry.
        """

        def mutate(draft: ScreenAreas) -> bool:
            area = draft.get_area(area_id)
            if area is None:
                raise NodeNotFoundError(area_id, kind="Area")
            if area_type is not None and area_type != area.type:
                area.type = area_type
                if role is None:
                    area.role = self._registry.role_for(area_type)
            if role is not None:
                area.role = _coerce(AreaRole, role)
            if state is not None:
                area.state = copy.deepcopy(state)
            if area.role is AreaRole.LEAD and draft.active_area_id == area_id:
                draft.last_lead_area_id = area_id
            return True

        return bool(self._transact("update_area", mutate))

    def set_active_area(self, area_id: str) -> bool:
        def mutate(draft: ScreenAreas) -> bool:
            area = draft.get_area(area_id)
            if area is None or area_id not in draft.layout:
                raise NodeNotFoundError(area_id, kind="Area")
            draft.active_area_id = area_id
            if area.role is AreaRole.LEAD:
                draft.last_lead_area_id = area_id
            return True

        return bool(self._transact("set_active_area", mutate))

    def set_active_tab(self, row_id: str, tab_id: str) -> bool:
        """Make *tab_id* the visible tab of stack *row_id*."""

        def mutate(draft: ScreenAreas) -> bool:
            row = draft.layout.get(row_id)
            if not isinstance(row, RowNode) or not row.is_stack:
                raise StructuralError(f"Node {row_id} is not a stack")
            if row.index_of(tab_id) < 0:
                raise StructuralError(f"Stack {row_id} has no tab {tab_id}")
            row.active_tab_id = tab_id
            if isinstance(draft.layout.get(tab_id), AreaNode):
                draft.active_area_id = tab_id
            return True

        return bool(self._transact("set_active_tab", mutate))

    def set_join_preview(
        self,
        area_id: str | None,
        direction: Direction | str | None = None,
    ) -> bool:
        """Store (or clear, with area_id=None) the join preview."""

        def mutate(draft: ScreenAreas) -> bool:
            if area_id is None or direction is None:
                draft.join_preview = None
                return True
            if area_id not in draft.layout:
                raise NodeNotFoundError(area_id)
            moving = _coerce(Direction, direction)
            draft.join_preview = JoinPreview(
                area_id,
                moving,
                tuple(join_candidates(draft.layout, area_id, moving)),
            )
            return True

        return bool(self._transact("set_join_preview", mutate))

    # ------------------------------------------------------------------
    # Public: drag placement
    # ------------------------------------------------------------------
    def set_area_to_open(
        self,
        position: Vec2 | tuple[float, float] | Mapping[str, float] | None,
        area: AreaDescriptor | Mapping[str, Any] | None = None,
    ) -> bool:
        """
        Start (or cancel, with area=None) a drag placement.

        *area* is an AreaDescriptor or a mapping with keys type, state,
        role and sourceId.
        """

        def mutate(draft: ScreenAreas) -> bool:
            if area is None or position is None:
                draft.area_to_open = None
                return True
            descriptor = self._descriptor(area)
            if descriptor.is_move and descriptor.source_id not in draft.areas:
                raise NodeNotFoundError(descriptor.source_id, kind="Area")
            draft.area_to_open = AreaToOpen(Vec2.of(position), descriptor)
            return True

        return bool(self._transact("set_area_to_open", mutate))

    def update_area_to_open_position(
        self, position: Vec2 | tuple[float, float] | Mapping[str, float]
    ) -> bool:
        """
        Move the pending placement.  A no-op without a pending placement.

        This runs at pointer rate, so it publishes a shallow copy rather
        than a full deep-copied draft.
        """
        screen = self._screens.active_screen
        pending = screen.areas.area_to_open
        if pending is None:
            return False
        screen.areas = dataclasses.replace(
            screen.areas, area_to_open=AreaToOpen(Vec2.of(position), pending.area)
        )
        self._changed(self._screens.active_screen_id)
        return True

    def finalize_area_placement(
        self,
        target_id: str | None = None,
        placement: PlacementRegion | str | None = None,
    ) -> Optional[str]:
        """
        Commit the pending placement.

        Returns:
            The placed area id, or None if the placement was aborted or
            failed.  In every case area_to_open is cleared.
        """
        outcome: dict[str, Any] = {}

        def mutate(draft: ScreenAreas) -> Optional[str]:
            region = _coerce(PlacementRegion, placement) if placement is not None else None
            phase, area_id = finalize_placement(
                draft,
                self._screens.active_screen.container_rect,
                self._options,
                self._registry,
                target_id=target_id,
                placement=region,
            )
            outcome["phase"] = phase
            outcome["error"] = draft.errors[-1] if draft.errors else None
            return area_id

        area_id = self._transact("finalize_area_placement", mutate, clear_pending=True)

        phase = outcome.get("phase")
        if phase is PlacementPhase.COMMITTED:
            self._emit(EngineEvent.AREA_PLACED, area_id)
        elif phase is PlacementPhase.ABORTED:
            self._emit(EngineEvent.ERROR_RECORDED, outcome["error"])
        return area_id

    def cleanup_temporary_states(self) -> None:
        """Drop any pending placement and join preview on the active screen."""
        screen = self._screens.active_screen
        if screen.areas.area_to_open is None and screen.areas.join_preview is None:
            return
        screen.areas = dataclasses.replace(
            screen.areas, area_to_open=None, join_preview=None
        )
        log.debug("Temporary states cleared on screen %s", self.active_screen_id)
        self._changed(self._screens.active_screen_id)

    def resolve_drop_target(
        self, position: Vec2 | tuple[float, float] | Mapping[str, float]
    ) -> Optional[tuple[str, PlacementRegion]]:
        """
        Read-only preview of where a drop at *position* would land.

        Returns:
            (target id, placement region), or None with no viewports.
        """
        areas = self.state
        pointer = Vec2.of(position)
        target = resolve_hovered_target(
            pointer, areas.viewports, areas.layout, self._options.detection_size
        )
        if target is None:
            return None
        region = resolve_placement_region(
            areas.viewports[target], pointer, self._options.stack_zone_ratio
        )
        return target, region

    # ------------------------------------------------------------------
    # Public: screens
    # ------------------------------------------------------------------
    def add_screen(self) -> str:
        """Create a classic screen in the same window and activate it."""
        container = self._screens.active_screen.container_rect
        screen_id = self._screens.add_screen(
            role=self._registry.role_for(self._options.default_area_type)
        )
        self._screens.require_screen(screen_id).container_rect = container
        self._refresh_viewports(screen_id)
        self._emit(EngineEvent.SCREEN_ADDED, screen_id)
        self._changed(screen_id)
        return screen_id

    def switch_screen(self, screen_id: str) -> bool:
        try:
            return self._screens.switch_screen(screen_id)
        except LayoutError as exc:
            log.warning("switch_screen rejected: %s", exc)
            self._record_error(str(exc))
            return False

    def remove_screen(self, screen_id: str) -> bool:
        try:
            removed = self._screens.remove_screen(screen_id)
        except LayoutError as exc:
            self._record_error(str(exc))
            return False
        if removed:
            self._emit(EngineEvent.SCREEN_REMOVED, screen_id)
        return removed

    def duplicate_screen(self, screen_id: str) -> Optional[str]:
        try:
            new_id = self._screens.duplicate_screen(screen_id)
        except LayoutError as exc:
            log.warning("duplicate_screen rejected: %s", exc)
            self._record_error(str(exc))
            return None
        self._emit(EngineEvent.SCREEN_ADDED, new_id)
        self._changed(new_id)
        return new_id

    def detach_area(self, area_id: str) -> Optional[str]:
        """
        Move an area out of the active screen into a new detached screen.

        Returns:
            The new screen id, or None if the area could not be detached.
        """

        def mutate(draft: ScreenAreas) -> Area:
            area = draft.get_area(area_id)
            if area is None:
                raise NodeNotFoundError(area_id, kind="Area")
            snapshot = copy.deepcopy(area)
            operations.remove_area(draft, area_id, allow_empty=True)
            return snapshot

        snapshot = self._transact("detach_area", mutate)
        if snapshot is None:
            return None
        screen_id = self._screens.add_detached_screen(snapshot, area_id)
        self._emit(EngineEvent.SCREEN_ADDED, screen_id)
        self._changed(screen_id)
        return screen_id

    # ------------------------------------------------------------------
    # Public: queries
    # ------------------------------------------------------------------
    def get_area_by_id(self, area_id: str) -> Optional[Area]:
        return self.state.get_area(area_id)

    def get_all_areas(self) -> dict[str, Area]:
        return dict(self.state.areas)

    def get_active_area(self) -> Optional[Area]:
        return self.state.get_area(self.state.active_area_id)

    def get_area_errors(self) -> list[str]:
        return list(self.state.errors)

    def get_last_split_result(self) -> Optional[SplitResult]:
        return self.state.last_split_result

    def get_last_lead_area_id(self) -> Optional[str]:
        return self.state.last_lead_area_id

    def get_viewport(self, node_id: str) -> Optional[Rect]:
        return self.state.viewports.get(node_id)

    def clear_errors(self, screen_id: str | None = None) -> None:
        screen_id = screen_id or self._screens.active_screen_id
        screen = self._screens.get_screen(screen_id)
        if screen is None or not screen.areas.errors:
            return
        screen.areas = dataclasses.replace(screen.areas, errors=[])
        self._changed(screen_id)

    # ------------------------------------------------------------------
    # Internal: helpers
    # ------------------------------------------------------------------
    def _resolve_role(self, area_type: str, role: AreaRole | str | None) -> AreaRole:
        if role is not None:
            return _coerce(AreaRole, role)
        return self._registry.role_for(area_type)

    def _descriptor(self, area: AreaDescriptor | Mapping[str, Any]) -> AreaDescriptor:
        if isinstance(area, AreaDescriptor):
            return area
        area_type = area.get("type")
        source_id = area.get("sourceId", area.get("source_id"))
        if area_type is None and source_id is None:
            raise PolicyError("Area descriptor needs a type or a sourceId")
        state = area.get("state")
        role = area.get("role")
        return AreaDescriptor(
            type=area_type or "",
            state=copy.deepcopy(state) if state is not None
            else self._registry.default_state_for(area_type or ""),
            role=_coerce(AreaRole, role) if role is not None else None,
            source_id=source_id,
        )

    # ------------------------------------------------------------------
    # Debug
    # ------------------------------------------------------------------
    def to_dict(self) -> dict[str, Any]:
        return self._screens.to_dict()

    def dump_state(self) -> str:
        """Return a formatted dump of every screen for debugging."""
        return "\n".join([
            f"=== LayoutEngine: active screen {self.active_screen_id} ===",
            "",
            self._screens.dump_state(),
        ])

    def __repr__(self) -> str:
        return (
            f"LayoutEngine("
            f"screens={self._screens.screen_count}, "
            f"active={self.active_screen_id!r}, "
            f"areas={self.state.area_count})"
        )
