"""
areatiler.tiling.tree - Modelo del arbol de layout.

El layout es un mapa plano id -> nodo. Hay dos variantes de nodo:
    - AreaNode : hoja, referencia pura a un Area (los datos viven aparte).
    - RowNode  : contenedor con orientacion (horizontal / vertical / stack),
                 lista ordenada de hijos {id, size} y, para stacks, el tab
                 activo.

La relacion hijo -> padre nunca se guarda: se deriva con una pasada
sobre el mapa (compute_parent_map) cada vez que se necesita, para que
no existan dos fuentes de verdad que puedan desincronizarse.
"""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping, Union

log = logging.getLogger(__name__)


# ============================================================================
# Enums
# ============================================================================
class Orientation(enum.Enum):
    """Orientacion de un row."""
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    STACK = "stack"


class AreaRole(enum.Enum):
    """Agrupacion semantica de un area; controla que se puede apilar."""
    LEAD = "lead"
    FOLLOW = "follow"
    SELF = "self"


# ============================================================================
# Datos de area y nodos
# ============================================================================
@dataclass(slots=True)
class Area:
    """
    Datos de una hoja renderizable.

    Atributos:
        id:    Identificador unico dentro del screen.
        type:  Tag que interpreta el colaborador de render.
        role:  LEAD / FOLLOW / SELF.
        state: Payload opaco del colaborador; el engine nunca lo interpreta.
    """

    id: str
    type: str
    role: AreaRole = AreaRole.SELF
    state: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "role": self.role.value,
            "state": self.state,
        }


@dataclass(slots=True)
class AreaNode:
    """Hoja del layout: solo referencia el id del Area."""

    id: str

    @property
    def is_row(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "area", "id": self.id}


@dataclass(slots=True)
class RowChild:
    """Referencia a un hijo de un row con su peso fraccional."""

    id: str
    size: float


@dataclass(slots=True)
class RowNode:
    """
    Contenedor de hijos con orientacion.

    Los `size` de los hijos son pesos fraccionales que suman 1.0 despues
    de cualquier cambio estructural. En un stack todos los hijos ocupan
    el mismo rectangulo y solo `active_tab_id` es visible.
    """

    id: str
    orientation: Orientation
    children: list[RowChild] = field(default_factory=list)
    active_tab_id: str | None = None

    @property
    def is_row(self) -> bool:
        return True

    @property
    def is_stack(self) -> bool:
        return self.orientation is Orientation.STACK

    @property
    def child_ids(self) -> list[str]:
        return [c.id for c in self.children]

    def index_of(self, child_id: str) -> int:
        """Indice del hijo, o -1 si no esta."""
        for i, child in enumerate(self.children):
            if child.id == child_id:
                return i
        return -1

    def normalize_sizes(self) -> None:
        """Renormaliza los pesos para que sumen 1.0."""
        if not self.children:
            return
        total = sum(c.size for c in self.children)
        if total <= 0:
            equal = 1.0 / len(self.children)
            for c in self.children:
                c.size = equal
            return
        for c in self.children:
            c.size = c.size / total

    def equalize_sizes(self) -> None:
        if not self.children:
            return
        equal = 1.0 / len(self.children)
        for c in self.children:
            c.size = equal

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "kind": "row",
            "id": self.id,
            "orientation": self.orientation.value,
            "children": [{"id": c.id, "size": c.size} for c in self.children],
        }
        if self.active_tab_id is not None:
            data["activeTabId"] = self.active_tab_id
        return data


Node = Union[AreaNode, RowNode]
Layout = dict[str, Node]


# ============================================================================
# Accesores estructurales
# ============================================================================
def get_node_by_id(layout: Mapping[str, Node], node_id: str | None) -> Node | None:
    if node_id is None:
        return None
    return layout.get(node_id)


def get_row(layout: Mapping[str, Node], row_id: str | None) -> RowNode | None:
    """Retorna el nodo si existe y es un row, o None."""
    node = get_node_by_id(layout, row_id)
    return node if isinstance(node, RowNode) else None


def compute_parent_map(layout: Mapping[str, Node]) -> dict[str, str]:
    """
    Construye el mapa hijo -> id del row padre en una sola pasada.

    Si un id aparece en mas de un row (arbol corrupto), gana el primero
    encontrado; validate_tree reporta ese caso.
    """
    parents: dict[str, str] = {}
    for node_id, node in layout.items():
        if isinstance(node, RowNode):
            for child in node.children:
                parents.setdefault(child.id, node_id)
    return parents


def get_parent_row_of(layout: Mapping[str, Node], node_id: str) -> RowNode | None:
    """Row que contiene a *node_id*, o None si es raiz o huerfano."""
    parent_id = compute_parent_map(layout).get(node_id)
    return get_row(layout, parent_id)


def find_first_leaf_under(layout: Mapping[str, Node], node_id: str | None) -> str | None:
    """
    Desciende en profundidad hasta la primera hoja renderizable.

    En un stack se prefiere el tab activo, que es el que esta visible.
    """
    seen: set[str] = set()
    current = node_id
    while current is not None and current not in seen:
        seen.add(current)
        node = layout.get(current)
        if node is None:
            return None
        if isinstance(node, AreaNode):
            return current
        if not node.children:
            return None
        if node.is_stack and node.active_tab_id in node.child_ids:
            current = node.active_tab_id
        else:
            current = node.children[0].id
    return None


def iter_subtree(layout: Mapping[str, Node], node_id: str) -> Iterator[str]:
    """Recorre en pre-orden los ids alcanzables desde *node_id*."""
    stack = [node_id]
    seen: set[str] = set()
    while stack:
        current = stack.pop()
        if current in seen:
            continue
        seen.add(current)
        node = layout.get(current)
        if node is None:
            continue
        yield current
        if isinstance(node, RowNode):
            stack.extend(reversed(node.child_ids))


def collect_leaf_ids(layout: Mapping[str, Node], node_id: str | None) -> list[str]:
    """Ids de todas las hojas bajo *node_id*, en orden de lectura."""
    if node_id is None:
        return []
    return [i for i in iter_subtree(layout, node_id) if isinstance(layout[i], AreaNode)]


# ============================================================================
# Validacion de invariantes
# ============================================================================
def validate_tree(
    layout: Mapping[str, Node],
    root_id: str | None,
    tolerance: float = 1e-6,
) -> list[str]:
    """
    Comprueba los invariantes estructurales del arbol.

    Returns:
        Lista de problemas encontrados (vacia si el arbol es valido).
    """
    problems: list[str] = []

    if (root_id is None) != (len(layout) == 0):
        problems.append(
            f"root is {root_id!r} but layout has {len(layout)} nodes"
        )
    if root_id is not None and root_id not in layout:
        problems.append(f"root {root_id} is not in layout")

    owners: dict[str, str] = {}
    for node_id, node in layout.items():
        if node.id != node_id:
            problems.append(f"node keyed {node_id} has id {node.id}")
        if not isinstance(node, RowNode):
            continue

        if len(node.children) < 2:
            problems.append(f"row {node_id} has {len(node.children)} children")

        for child in node.children:
            if child.id not in layout:
                problems.append(f"row {node_id} references missing node {child.id}")
            if child.id == root_id:
                problems.append(f"root {root_id} is referenced by row {node_id}")
            if child.id in owners:
                problems.append(
                    f"node {child.id} shared by rows {owners[child.id]} and {node_id}"
                )
            owners[child.id] = node_id

        if node.children:
            total = sum(c.size for c in node.children)
            if not math.isclose(total, 1.0, abs_tol=tolerance):
                problems.append(f"row {node_id} sizes sum to {total:.9f}")

        if node.is_stack and node.active_tab_id not in node.child_ids:
            problems.append(
                f"stack {node_id} active tab {node.active_tab_id} is not a child"
            )

    # Alcanzabilidad y ciclos desde la raiz
    if root_id is not None and root_id in layout:
        reachable: set[str] = set()
        stack = [root_id]
        while stack:
            current = stack.pop()
            if current in reachable:
                problems.append(f"cycle through {current}")
                continue
            reachable.add(current)
            node = layout.get(current)
            if isinstance(node, RowNode):
                stack.extend(c.id for c in node.children if c.id in layout)
        for node_id in layout:
            if node_id not in reachable:
                problems.append(f"node {node_id} is unreachable from root")

    return problems
