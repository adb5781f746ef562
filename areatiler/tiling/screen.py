"""
areatiler.tiling.screen - Estado de un screen.

Un screen es una instancia completamente independiente del arbol de
layout. Su estado (ScreenAreas) agrupa:
    - el mapa plano de nodos y la raiz,
    - los datos de cada area,
    - los viewports derivados,
    - el estado transitorio de interaccion (area_to_open, join_preview),
    - el log de errores.

Screen envuelve ese estado con los flags de ventana (detached) y el
rectangulo contenedor que entrega el colaborador de render.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

from areatiler.tiling.placement import Direction
from areatiler.tiling.rect import Rect
from areatiler.tiling.tree import Area, AreaNode, AreaRole, Layout, RowNode

if TYPE_CHECKING:
    from areatiler.tiling.finalizer import AreaToOpen

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SplitResult:
    """Row creado (o ampliado) por el ultimo split y el separador nuevo."""

    new_row_id: str
    separator_index: int


@dataclass(frozen=True, slots=True)
class JoinPreview:
    """Previsualizacion de un join mientras el usuario arrastra un borde."""

    area_id: str
    moving_in_direction: Direction
    eligible_area_ids: tuple[str, ...] = ()


@dataclass(slots=True)
class ScreenAreas:
    """
    Estado mutable del arbol de un screen.

    Los viewports son derivados: solo compute_viewports los escribe.
    """

    id_counter: int = 0
    root_id: str | None = None
    layout: Layout = field(default_factory=dict)
    areas: dict[str, Area] = field(default_factory=dict)
    viewports: dict[str, Rect] = field(default_factory=dict)
    active_area_id: str | None = None
    area_to_open: Optional[AreaToOpen] = None
    errors: list[str] = field(default_factory=list)
    join_preview: JoinPreview | None = None
    last_split_result: SplitResult | None = None
    last_lead_area_id: str | None = None

    # ------------------------------------------------------------------
    # Ids
    # ------------------------------------------------------------------
    def next_id(self, prefix: str) -> str:
        """
        Reserva el siguiente id libre "<prefix>-N".

        Salta ids que ya existen: un arbol duplicado o desacoplado puede
        traer ids que el contador no produjo.
        """
        while True:
            self.id_counter += 1
            candidate = f"{prefix}-{self.id_counter}"
            if candidate not in self.layout and candidate not in self.areas:
                return candidate

    # ------------------------------------------------------------------
    # Accesores
    # ------------------------------------------------------------------
    @property
    def area_count(self) -> int:
        return len(self.areas)

    def get_area(self, area_id: str | None) -> Area | None:
        if area_id is None:
            return None
        return self.areas.get(area_id)

    def record_error(self, message: str, limit: int) -> None:
        """Agrega un error al log, descartando los mas antiguos."""
        self.errors.append(message)
        overflow = len(self.errors) - limit
        if overflow > 0:
            del self.errors[:overflow]

    # ------------------------------------------------------------------
    # Serializacion / debug
    # ------------------------------------------------------------------
    def to_dict(self) -> dict[str, Any]:
        """Forma estructurada que consume el colaborador de render."""
        return {
            "_id": self.id_counter,
            "rootId": self.root_id,
            "layout": {k: n.to_dict() for k, n in self.layout.items()},
            "areas": {k: a.to_dict() for k, a in self.areas.items()},
            "viewports": {k: r.to_dict() for k, r in self.viewports.items()},
            "activeAreaId": self.active_area_id,
            "areaToOpen": (
                self.area_to_open.to_dict() if self.area_to_open is not None else None
            ),
            "errors": list(self.errors),
            "joinPreview": (
                {
                    "areaId": self.join_preview.area_id,
                    "movingInDirection": self.join_preview.moving_in_direction.value,
                    "eligibleAreaIds": list(self.join_preview.eligible_area_ids),
                }
                if self.join_preview is not None
                else None
            ),
            "lastSplitResultData": (
                {
                    "newRowId": self.last_split_result.new_row_id,
                    "separatorIndex": self.last_split_result.separator_index,
                }
                if self.last_split_result is not None
                else None
            ),
            "lastLeadAreaId": self.last_lead_area_id,
        }

    def dump_state(self) -> str:
        lines = [
            f"    Root: {self.root_id}  Active: {self.active_area_id}",
            f"    Areas: {len(self.areas)}  Nodes: {len(self.layout)}",
        ]
        if self.root_id is not None:
            self._dump_node(self.root_id, 1.0, 2, lines)
        for message in self.errors:
            lines.append(f"    [error] {message}")
        return "\n".join(lines)

    def _dump_node(self, node_id: str, size: float, depth: int, lines: list[str]) -> None:
        indent = "  " * depth
        node = self.layout.get(node_id)
        rect = self.viewports.get(node_id)
        where = f" {rect}" if rect is not None else ""
        if isinstance(node, RowNode):
            tab = f" tab={node.active_tab_id}" if node.is_stack else ""
            lines.append(
                f"{indent}[{node.orientation.value}] {node_id} {size:.0%}{tab}{where}"
            )
            for child in node.children:
                self._dump_node(child.id, child.size, depth + 1, lines)
        elif isinstance(node, AreaNode):
            area = self.areas.get(node_id)
            kind = f"{area.type}/{area.role.value}" if area is not None else "?"
            lines.append(f"{indent}{node_id} ({kind}) {size:.0%}{where}")
        else:
            lines.append(f"{indent}{node_id} <missing>")


@dataclass(slots=True)
class Screen:
    """
    Un screen: estado del arbol mas flags de ventana.

    Atributos:
        areas:                 Estado del arbol.
        is_detached:           True si vive en su propia ventana.
        detached_from_area_id: Area de origen para screens desacoplados.
        container_rect:        Rectangulo raiz que entrega el render.
    """

    areas: ScreenAreas = field(default_factory=ScreenAreas)
    is_detached: bool = False
    detached_from_area_id: str | None = None
    container_rect: Rect | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "areas": self.areas.to_dict(),
            "isDetached": self.is_detached,
        }
        if self.detached_from_area_id is not None:
            data["detachedFromAreaId"] = self.detached_from_area_id
        return data


def create_initial_screen(
    area_type: str,
    state: dict[str, Any] | None = None,
    role: AreaRole = AreaRole.SELF,
    is_detached: bool = False,
) -> Screen:
    """Screen con un unico area que es a la vez raiz y area activa."""
    areas = ScreenAreas()
    area_id = areas.next_id("area")
    areas.areas[area_id] = Area(area_id, area_type, role, dict(state or {}))
    areas.layout[area_id] = AreaNode(area_id)
    areas.root_id = area_id
    areas.active_area_id = area_id
    if role is AreaRole.LEAD:
        areas.last_lead_area_id = area_id
    return Screen(areas=areas, is_detached=is_detached)
