"""
areatiler.tiling.finalizer - Transaccion de colocacion por drag & drop.

Maquina de estados sobre una unica colocacion pendiente:

    IDLE --set_area_to_open--> PENDING --finalize--> COMMITTED --> IDLE
                                      \\--finalize--> ABORTED   --> IDLE

Mientras la colocacion esta PENDING, ScreenAreas.area_to_open guarda la
posicion del puntero y el descriptor del area (nueva o existente). Al
finalizar:
    1. Se resuelve el objetivo (explicito o el que esta bajo el puntero).
    2. Se resuelve la region (explicita o segun la posicion).
    3. Si es un movimiento, se desengancha el area de origen.
    4. Se inserta con split() o stack().
    5. Se actualiza el area activa.

Los abortos esperables (sin objetivo, sin viewport) se registran en el
log de errores del screen y no lanzan. Cualquier excepcion la captura
el engine, que descarta el borrador y limpia area_to_open.
"""

from __future__ import annotations

import copy
import enum
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from areatiler.config.defaults import EngineOptions
from areatiler.core.errors import GeometryError, LayoutError, PolicyError, StructuralError
from areatiler.tiling.operations import merge_same_orientation, remove_node, split, stack
from areatiler.tiling.placement import (
    PlacementRegion,
    resolve_hovered_target,
    resolve_placement_region,
)
from areatiler.tiling.rect import Rect
from areatiler.tiling.screen import ScreenAreas
from areatiler.tiling.tree import Area, AreaRole
from areatiler.tiling.vec2 import Vec2
from areatiler.tiling.viewport import compute_viewports

if TYPE_CHECKING:
    from areatiler.core.registry import AreaTypeRegistry

log = logging.getLogger(__name__)


class PlacementPhase(enum.Enum):
    """Fase de la transaccion de colocacion."""
    IDLE = "idle"
    PENDING = "pending"
    COMMITTED = "committed"
    ABORTED = "aborted"


@dataclass(slots=True)
class AreaDescriptor:
    """
    Lo que se esta arrastrando.

    Con source_id es un movimiento de un area existente; sin el, se
    crea un area nueva de tipo *type* con una copia de *state*.
    """

    type: str
    state: dict[str, Any] = field(default_factory=dict)
    role: AreaRole | None = None
    source_id: str | None = None

    @property
    def is_move(self) -> bool:
        return self.source_id is not None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type, "state": self.state}
        if self.role is not None:
            data["role"] = self.role.value
        if self.source_id is not None:
            data["sourceId"] = self.source_id
        return data


@dataclass(slots=True)
class AreaToOpen:
    """Colocacion pendiente: posicion del puntero y area arrastrada."""

    position: Vec2
    area: AreaDescriptor

    def to_dict(self) -> dict[str, Any]:
        return {
            "position": {"x": self.position.x, "y": self.position.y},
            "area": self.area.to_dict(),
        }


def placement_phase(areas: ScreenAreas) -> PlacementPhase:
    """IDLE o PENDING; COMMITTED/ABORTED solo existen durante finalize."""
    return PlacementPhase.PENDING if areas.area_to_open is not None else PlacementPhase.IDLE


def _abort(
    areas: ScreenAreas,
    options: EngineOptions,
    error: LayoutError,
    created_id: str | None = None,
) -> PlacementPhase:
    """Descarta la colocacion y deja el error en el log del screen."""
    if created_id is not None:
        areas.areas.pop(created_id, None)
    areas.area_to_open = None
    areas.record_error(str(error), options.max_errors)
    log.warning("PLACE aborted (%s): %s", type(error).__name__, error)
    return PlacementPhase.ABORTED


def _resolve_role(
    descriptor: AreaDescriptor, registry: AreaTypeRegistry | None
) -> AreaRole:
    if descriptor.role is not None:
        return descriptor.role
    if registry is not None:
        return registry.role_for(descriptor.type)
    return AreaRole.SELF


def finalize_placement(
    areas: ScreenAreas,
    container: Rect | None,
    options: EngineOptions,
    registry: AreaTypeRegistry | None = None,
    target_id: str | None = None,
    placement: PlacementRegion | None = None,
) -> tuple[PlacementPhase, str | None]:
    """
    Confirma la colocacion pendiente sobre el borrador *areas*.

    Args:
        areas:     Borrador del screen activo.
        container: Rectangulo raiz del screen (para resolver el hover).
        options:   Opciones del engine.
        registry:  Registro de tipos para resolver roles.
        target_id: Objetivo explicito (si None, el que este bajo el puntero).
        placement: Region explicita (si None, la que indique el puntero).

    Returns:
        (fase final, id del area colocada o None).
    """
    pending = areas.area_to_open
    if pending is None:
        return _abort(areas, options, PolicyError("No area to open")), None

    descriptor = pending.area
    viewports = compute_viewports(areas.layout, areas.root_id, container)

    # Area a colocar: existente (movimiento) o nueva
    created_id: str | None = None
    if descriptor.is_move:
        area_id = descriptor.source_id
        area = areas.get_area(area_id)
        if area is None:
            return _abort(
                areas, options, StructuralError(f"Source area {area_id} not found")
            ), None
    else:
        if (
            options.strict_area_types
            and registry is not None
            and not registry.has(descriptor.type)
        ):
            return _abort(
                areas, options, PolicyError(f"Unknown area type: {descriptor.type}")
            ), None
        area_id = areas.next_id("area")
        area = Area(
            area_id,
            descriptor.type,
            _resolve_role(descriptor, registry),
            copy.deepcopy(descriptor.state),
        )
        areas.areas[area_id] = area
        created_id = area_id

    # Objetivo
    if target_id is None:
        target_id = resolve_hovered_target(
            pending.position, viewports, areas.layout, options.detection_size
        )
    if target_id is None:
        return _abort(
            areas, options, GeometryError("No target found for placement"), created_id
        ), None
    target_rect = viewports.get(target_id)
    if target_rect is None:
        return _abort(
            areas,
            options,
            GeometryError(f"No viewport for target {target_id}"),
            created_id,
        ), None

    if placement is None:
        placement = resolve_placement_region(
            target_rect, pending.position, options.stack_zone_ratio
        )

    areas.area_to_open = None

    if descriptor.is_move:
        if target_id == area_id:
            return _abort(
                areas, options, PolicyError(f"Cannot place {area_id} onto itself")
            ), None
        replaced = remove_node(areas, area_id)
        target_id = replaced.get(target_id, target_id)
        if target_id not in areas.layout:
            raise PolicyError(f"Target {target_id} vanished while moving {area_id}")

    if placement is PlacementRegion.STACK:
        stack(areas, target_id, area_id, options.allow_stack_mixed_roles)
    else:
        areas.last_split_result = split(areas, target_id, placement, area_id)

    if descriptor.is_move:
        merge_same_orientation(areas)

    areas.active_area_id = area_id
    if area.role is AreaRole.LEAD:
        areas.last_lead_area_id = area_id

    log.info(
        "PLACE %s %s %s (%s)",
        "moved" if descriptor.is_move else "created",
        area_id,
        target_id,
        placement.value,
    )
    return PlacementPhase.COMMITTED, area_id
