"""
areatiler.tiling.operations - Mutaciones estructurales del arbol.

Todas las funciones reciben el ScreenAreas borrador de una transaccion
y lo modifican en sitio. Si detectan un problema lanzan una subclase
de LayoutError ANTES de tocar el arbol, de modo que el engine puede
descartar el borrador sin mas.

Primitivas:
    split              : inserta un area al lado de un nodo
    stack              : apila un area sobre un nodo (tabs)
    join               : elimina un hijo de un row y cede su peso al vecino
    simplify           : colapsa un row con un solo hijo (o vacio)
    set_child_sizes    : asigna pesos normalizados a los hijos de un row
    remove_node        : desengancha un nodo dejando el arbol valido
    merge_same_orientation : aplana rows anidados de la misma orientacion

Operaciones compuestas (las que dispara la interfaz):
    split_area         : split interactivo desde una esquina de un area
    join_or_move_area  : une dos areas adyacentes
    insert_area        : agrega un area al final del arbol
    remove_area        : elimina un area del arbol
"""

from __future__ import annotations

import copy
import logging
import math
from typing import Sequence

from areatiler.core.errors import (
    NodeNotFoundError,
    PolicyError,
    RoleMismatchError,
    StructuralError,
)
from areatiler.tiling.placement import Direction, PlacementRegion
from areatiler.tiling.screen import ScreenAreas, SplitResult
from areatiler.tiling.tree import (
    Area,
    AreaNode,
    Node,
    Orientation,
    RowChild,
    RowNode,
    find_first_leaf_under,
    get_parent_row_of,
    iter_subtree,
)

log = logging.getLogger(__name__)


CORNERS = ("ne", "nw", "se", "sw")


# ============================================================================
# Helpers internos
# ============================================================================
def _require_node(areas: ScreenAreas, node_id: str) -> Node:
    node = areas.layout.get(node_id)
    if node is None:
        raise NodeNotFoundError(node_id)
    return node


def _require_row(areas: ScreenAreas, row_id: str) -> RowNode:
    node = _require_node(areas, row_id)
    if not isinstance(node, RowNode):
        raise StructuralError(f"Node {row_id} is not a row")
    return node


def _replace_slot(
    areas: ScreenAreas, parent: RowNode | None, old_id: str, new_id: str
) -> None:
    """
    Sustituye *old_id* por *new_id* en el slot que ocupa.

    El padre se pasa ya resuelto: el llamador lo calcula antes de crear
    el nodo nuevo, que puede referenciar a *old_id*.
    """
    if parent is None:
        if areas.root_id == old_id:
            areas.root_id = new_id
        return
    index = parent.index_of(old_id)
    parent.children[index].id = new_id
    if parent.active_tab_id == old_id:
        parent.active_tab_id = new_id


def _delete_subtree(areas: ScreenAreas, node_id: str) -> list[str]:
    """Borra del layout y del mapa de areas todo lo que cuelga de *node_id*."""
    removed = list(iter_subtree(areas.layout, node_id))
    for removed_id in removed:
        areas.layout.pop(removed_id, None)
        areas.areas.pop(removed_id, None)
    _forget_ids(areas, removed)
    return removed


def _forget_ids(areas: ScreenAreas, removed: Sequence[str]) -> None:
    """Limpia referencias sueltas a ids que ya no estan en el arbol."""
    if areas.last_lead_area_id in removed:
        areas.last_lead_area_id = None
    if areas.join_preview is not None and areas.join_preview.area_id in removed:
        areas.join_preview = None


def _repair_active(areas: ScreenAreas, fallback: str | None) -> None:
    """Garantiza que active_area_id apunta a un area renderizable."""
    active = areas.active_area_id
    if active is not None and active in areas.areas and active in areas.layout:
        return
    candidate = find_first_leaf_under(areas.layout, fallback)
    if candidate is None:
        candidate = find_first_leaf_under(areas.layout, areas.root_id)
    areas.active_area_id = candidate


def _ensure_area_node(areas: ScreenAreas, area_id: str) -> None:
    """Crea la hoja de *area_id*; falla si ya forma parte del arbol."""
    if area_id in areas.layout:
        raise StructuralError(f"Node {area_id} is already in the layout")
    areas.layout[area_id] = AreaNode(area_id)


# ============================================================================
# split
# ============================================================================
def split(
    areas: ScreenAreas,
    target_id: str,
    placement: PlacementRegion,
    new_area_id: str,
) -> SplitResult:
    """
    Inserta *new_area_id* al lado de *target_id*.

    Si el padre del objetivo ya tiene la orientacion de la colocacion,
    el area se inserta como hermano y los vecinos inmediatos reparten
    su peso con ella. Si no, se sintetiza un row nuevo de dos hijos
    (0.5 / 0.5) que ocupa el slot del objetivo.

    Un objetivo que es tab de un stack se sustituye por el stack: no se
    parte un tab individual.

    Returns:
        SplitResult con el row afectado y el indice del separador nuevo.
    """
    if placement is PlacementRegion.STACK:
        raise StructuralError("split requires an edge placement, not stack")
    _require_node(areas, target_id)
    if new_area_id in areas.layout:
        raise StructuralError(f"Node {new_area_id} is already in the layout")

    areas.layout[new_area_id] = AreaNode(new_area_id)
    return _insert_beside(areas, target_id, placement, new_area_id)


def _insert_beside(
    areas: ScreenAreas,
    target_id: str,
    placement: PlacementRegion,
    new_id: str,
    halve_target: bool = False,
) -> SplitResult:
    """
    Engancha un nodo ya presente en el layout al lado de *target_id*.

    Por defecto el nodo nuevo reparte el peso de los vecinos del punto
    de insercion. Con *halve_target* solo se parte el slot del objetivo
    y el resto de los hermanos conserva su peso.
    """
    parent = get_parent_row_of(areas.layout, target_id)
    if parent is not None and parent.is_stack:
        target_id = parent.id
        parent = get_parent_row_of(areas.layout, target_id)

    orientation = placement.orientation

    if parent is not None and parent.orientation is orientation:
        index = parent.index_of(target_id)
        insert_at = index + (1 if placement.inserts_after else 0)

        if halve_target:
            neighbours = [parent.children[index]]
            share = neighbours[0].size / 2
        else:
            neighbours = [
                parent.children[i]
                for i in (insert_at - 1, insert_at)
                if 0 <= i < len(parent.children)
            ]
            share = sum(c.size for c in neighbours) / (len(neighbours) + 1)
        for child in neighbours:
            child.size = share
        parent.children.insert(insert_at, RowChild(new_id, share))
        parent.normalize_sizes()

        separator = insert_at if insert_at > 0 else 1
        log.info(
            "SPLIT %s -> %s into %s[%d] (%s)",
            target_id,
            new_id,
            parent.id,
            insert_at,
            placement.value,
        )
        return SplitResult(parent.id, separator)

    row_id = areas.next_id("row")
    if placement.inserts_after:
        pair = [RowChild(target_id, 0.5), RowChild(new_id, 0.5)]
    else:
        pair = [RowChild(new_id, 0.5), RowChild(target_id, 0.5)]

    _replace_slot(areas, parent, target_id, row_id)
    areas.layout[row_id] = RowNode(row_id, orientation, pair)

    log.info(
        "SPLIT %s -> %s new %s row %s (%s)",
        target_id,
        new_id,
        orientation.value,
        row_id,
        placement.value,
    )
    return SplitResult(row_id, 1)


# ============================================================================
# stack
# ============================================================================
def stack(
    areas: ScreenAreas,
    target_id: str,
    new_area_id: str,
    allow_mixed_roles: bool = True,
) -> str:
    """
    Apila *new_area_id* sobre *target_id* y lo deja como tab activo.

    Si el objetivo ya esta en un stack (o es el stack), el area se agrega
    al final y todos los tabs se re-igualan. Si no, se sintetiza un stack
    [objetivo, nuevo] que ocupa el slot del objetivo.

    Raises:
        RoleMismatchError: roles distintos con allow_mixed_roles=False.

    Returns:
        Id del row stack que contiene al area.
    """
    target = _require_node(areas, target_id)
    if new_area_id in areas.layout:
        raise StructuralError(f"Node {new_area_id} is already in the layout")

    stack_row: RowNode | None = None
    if isinstance(target, RowNode):
        if target.is_stack:
            stack_row = target
        else:
            leaf = find_first_leaf_under(areas.layout, target_id)
            if leaf is None:
                raise StructuralError(f"Row {target_id} has no leaf to stack on")
            target_id = leaf

    parent = get_parent_row_of(areas.layout, target_id)
    if stack_row is None and parent is not None and parent.is_stack:
        stack_row = parent

    if not allow_mixed_roles:
        reference_id = (
            find_first_leaf_under(areas.layout, stack_row.id)
            if stack_row is not None
            else target_id
        )
        reference = areas.get_area(reference_id)
        incoming = areas.get_area(new_area_id)
        if (
            reference is not None
            and incoming is not None
            and reference.role is not incoming.role
        ):
            raise RoleMismatchError(reference.role.value, incoming.role.value)

    areas.layout[new_area_id] = AreaNode(new_area_id)

    if stack_row is not None:
        stack_row.children.append(RowChild(new_area_id, 0.0))
        stack_row.equalize_sizes()
        stack_row.active_tab_id = new_area_id
        log.info(
            "STACK %s onto %s (%d tabs)",
            new_area_id,
            stack_row.id,
            len(stack_row.children),
        )
        return stack_row.id

    row_id = areas.next_id("row")
    _replace_slot(areas, parent, target_id, row_id)
    areas.layout[row_id] = RowNode(
        row_id,
        Orientation.STACK,
        [RowChild(target_id, 0.5), RowChild(new_area_id, 0.5)],
        active_tab_id=new_area_id,
    )
    log.info("STACK %s onto %s new stack %s", new_area_id, target_id, row_id)
    return row_id


# ============================================================================
# join / simplify
# ============================================================================
def join(
    areas: ScreenAreas,
    row_id: str,
    leaf_index: int,
    merge_direction: int,
) -> str | None:
    """
    Quita el hijo *leaf_index* de *row_id* y cede su peso al vecino.

    Args:
        row_id:          Row que contiene al hijo.
        leaf_index:      Indice del hijo que desaparece (con su subarbol).
        merge_direction: -1 para el vecino anterior, +1 para el siguiente.

    Returns:
        El id que ocupa ahora el slot: el propio row si conserva dos o
        mas hijos, o el hijo superviviente si el row colapso.
    """
    row = _require_row(areas, row_id)
    if merge_direction not in (-1, 1):
        raise StructuralError(f"Invalid merge direction {merge_direction}")
    if not 0 <= leaf_index < len(row.children):
        raise StructuralError(f"Row {row_id} has no child at index {leaf_index}")
    neighbour_index = leaf_index + merge_direction
    if not 0 <= neighbour_index < len(row.children):
        raise StructuralError(
            f"Row {row_id} has no sibling in direction {merge_direction} "
            f"of index {leaf_index}"
        )

    removed = row.children[leaf_index]
    neighbour = row.children[neighbour_index]
    neighbour.size += removed.size
    del row.children[leaf_index]
    _delete_subtree(areas, removed.id)
    row.normalize_sizes()

    if row.is_stack and row.active_tab_id not in row.child_ids:
        row.active_tab_id = neighbour.id

    log.info("JOIN %s removed %s into %s", row_id, removed.id, neighbour.id)

    result: str | None = row_id
    if len(row.children) < 2:
        result = simplify_upwards(areas, row_id)

    _repair_active(areas, result)
    return result


def simplify(areas: ScreenAreas, row_id: str) -> str | None:
    """
    Colapsa *row_id* si le queda un solo hijo (o ninguno).

    Un row con un hijo se sustituye por ese hijo en su padre (que hereda
    el peso del slot) o en la raiz. Un row vacio se quita del padre.
    Idempotente: sobre un row ya colapsado no hace nada.

    Returns:
        El id que ocupa el slot tras la operacion (None si desaparecio).
    """
    node = areas.layout.get(row_id)
    if not isinstance(node, RowNode):
        return row_id if node is not None else None
    if len(node.children) >= 2:
        return row_id

    parent = get_parent_row_of(areas.layout, row_id)

    if len(node.children) == 1:
        survivor = node.children[0].id
        _replace_slot(areas, parent, row_id, survivor)
        del areas.layout[row_id]
        log.debug("SIMPLIFY %s -> %s", row_id, survivor)
        return survivor

    del areas.layout[row_id]
    if parent is not None:
        del parent.children[parent.index_of(row_id)]
        parent.normalize_sizes()
        if parent.is_stack and parent.active_tab_id == row_id:
            parent.active_tab_id = parent.children[0].id if parent.children else None
    elif areas.root_id == row_id:
        areas.root_id = None
    log.debug("SIMPLIFY %s removed (empty)", row_id)
    return None


def simplify_upwards(areas: ScreenAreas, row_id: str) -> str | None:
    """
    simplify() transitivo: sube mientras el padre quede con menos de
    dos hijos. Retorna el resultado de simplificar *row_id*.
    """
    parent = get_parent_row_of(areas.layout, row_id)
    result = simplify(areas, row_id)

    while parent is not None and len(parent.children) < 2:
        next_parent = get_parent_row_of(areas.layout, parent.id)
        replacement = simplify(areas, parent.id)
        if result is None:
            result = replacement
        parent = next_parent
    return result


# ============================================================================
# Tamanos
# ============================================================================
def set_child_sizes(
    areas: ScreenAreas, row_id: str, sizes: Sequence[float]
) -> None:
    """
    Asigna pesos a los hijos de *row_id* por posicion, normalizados a 1.

    Raises:
        PolicyError: longitud distinta al numero de hijos, o pesos
                     infinitos, NaN, negativos o que no suman nada.
    """
    row = _require_row(areas, row_id)
    if len(sizes) != len(row.children):
        raise PolicyError(
            f"Row {row_id} has {len(row.children)} children, got {len(sizes)} sizes"
        )
    if not all(math.isfinite(s) for s in sizes):
        raise PolicyError(f"Non-finite size for row {row_id}: {list(sizes)}")
    if any(s < 0 for s in sizes):
        raise PolicyError(f"Negative size for row {row_id}: {list(sizes)}")
    total = sum(sizes)
    if total <= 0:
        raise PolicyError(f"Sizes for row {row_id} sum to {total}")

    for child, size in zip(row.children, sizes):
        child.size = size / total
    log.debug("SIZES %s -> %s", row_id, [round(c.size, 4) for c in row.children])


# ============================================================================
# Remocion / reorganizacion
# ============================================================================
def remove_node(areas: ScreenAreas, node_id: str) -> dict[str, str]:
    """
    Desengancha *node_id* del arbol sin borrar los datos de sus areas.

    El hueco se cierra como lo haria join(): el peso pasa al hermano
    anterior (o al siguiente si era el primero) y el row se simplifica
    si queda con un solo hijo.

    Returns:
        Mapa id_colapsado -> id_superviviente para que el llamador pueda
        reapuntar ids que tuviera guardados.
    """
    _require_node(areas, node_id)
    replaced: dict[str, str] = {}
    parent = get_parent_row_of(areas.layout, node_id)

    for detached_id in list(iter_subtree(areas.layout, node_id)):
        areas.layout.pop(detached_id, None)

    if parent is None:
        if areas.root_id == node_id:
            areas.root_id = None
        log.info("REMOVE %s (root)", node_id)
        return replaced

    index = parent.index_of(node_id)
    removed = parent.children.pop(index)
    if parent.children:
        neighbour = parent.children[index - 1 if index > 0 else 0]
        neighbour.size += removed.size
        parent.normalize_sizes()
        if parent.is_stack and parent.active_tab_id == node_id:
            parent.active_tab_id = neighbour.id

    if len(parent.children) < 2:
        survivor = simplify_upwards(areas, parent.id)
        if survivor is not None:
            replaced[parent.id] = survivor

    log.info("REMOVE %s from %s", node_id, parent.id)
    return replaced


def merge_same_orientation(areas: ScreenAreas) -> int:
    """
    Aplana rows no-stack anidados con la misma orientacion que su padre.

    Los pesos de los nietos se escalan por el peso del slot que ocupaba
    el row aplanado, asi la geometria no cambia.

    Returns:
        Numero de rows eliminados.
    """
    merged = 0
    changed = True
    while changed:
        changed = False
        for row in list(areas.layout.values()):
            if not isinstance(row, RowNode) or row.is_stack:
                continue
            for index, child in enumerate(row.children):
                inner = areas.layout.get(child.id)
                if (
                    not isinstance(inner, RowNode)
                    or inner.orientation is not row.orientation
                ):
                    continue
                spliced = [RowChild(c.id, c.size * child.size) for c in inner.children]
                row.children[index:index + 1] = spliced
                del areas.layout[inner.id]
                row.normalize_sizes()
                log.debug("MERGE %s into %s", inner.id, row.id)
                merged += 1
                changed = True
                break
            if changed:
                break
    return merged


# ============================================================================
# Operaciones compuestas
# ============================================================================
def split_area(
    areas: ScreenAreas,
    target_id: str,
    orientation: Orientation,
    corner: str,
) -> SplitResult:
    """
    Split interactivo arrastrando desde una esquina de *target_id*.

    El area nueva copia tipo, rol y estado del objetivo. La esquina
    decide el lado: con split horizontal, una esquina "w" pone el area
    nueva a la izquierda; con split vertical, una esquina "n" la pone
    arriba. Si el objetivo es (o esta en) un stack, se duplica el stack
    completo. El slot del objetivo se parte en dos mitades; los
    hermanos no cambian de tamano.
    """
    if orientation is Orientation.STACK:
        raise PolicyError("Interactive split must be horizontal or vertical")
    if corner not in CORNERS:
        raise PolicyError(f"Invalid corner {corner!r}, expected one of {CORNERS}")
    target = _require_node(areas, target_id)

    if orientation is Orientation.HORIZONTAL:
        placement = PlacementRegion.LEFT if corner[1] == "w" else PlacementRegion.RIGHT
    else:
        placement = PlacementRegion.TOP if corner[0] == "n" else PlacementRegion.BOTTOM

    parent = get_parent_row_of(areas.layout, target_id)
    if isinstance(target, AreaNode) and parent is not None and parent.is_stack:
        target, target_id = parent, parent.id

    if isinstance(target, RowNode):
        if not target.is_stack:
            raise StructuralError(f"Cannot split row {target_id} interactively")
        new_id = _duplicate_stack(areas, target)
    else:
        new_id = areas.next_id("area")
        source = areas.areas.get(target_id)
        if source is None:
            raise NodeNotFoundError(target_id, kind="Area")
        areas.areas[new_id] = Area(
            new_id, source.type, source.role, copy.deepcopy(source.state)
        )
        areas.layout[new_id] = AreaNode(new_id)

    result = _insert_beside(areas, target_id, placement, new_id, halve_target=True)
    areas.last_split_result = result
    return result


def _duplicate_stack(areas: ScreenAreas, row: RowNode) -> str:
    """Copia cada tab de *row* en un stack nuevo; retorna su id."""
    children: list[RowChild] = []
    active: str | None = None
    for child in row.children:
        source = areas.areas.get(child.id)
        if source is None:
            raise StructuralError(f"Stack {row.id} holds a non-area child {child.id}")
        copy_id = areas.next_id("area")
        areas.areas[copy_id] = Area(
            copy_id, source.type, source.role, copy.deepcopy(source.state)
        )
        areas.layout[copy_id] = AreaNode(copy_id)
        children.append(RowChild(copy_id, child.size))
        if child.id == row.active_tab_id:
            active = copy_id

    row_id = areas.next_id("row")
    areas.layout[row_id] = RowNode(
        row_id, Orientation.STACK, children, active_tab_id=active or children[0].id
    )
    return row_id


def join_or_move_area(
    areas: ScreenAreas,
    source_id: str,
    target_id: str,
    direction: Direction,
) -> str | None:
    """
    Une *source_id* con su vecino *target_id*: el objetivo desaparece y
    su peso pasa al origen.

    Ambos deben ser hijos adyacentes del mismo row. En rows horizontales
    o verticales la direccion debe ir sobre el eje del row.
    """
    if source_id == target_id:
        raise PolicyError("Cannot join an area with itself")
    _require_node(areas, source_id)
    _require_node(areas, target_id)

    row = get_parent_row_of(areas.layout, source_id)
    if row is None or row.index_of(target_id) < 0:
        raise StructuralError(f"Areas {source_id} and {target_id} are not siblings")

    source_index = row.index_of(source_id)
    target_index = row.index_of(target_id)
    if abs(source_index - target_index) != 1:
        raise StructuralError(f"Areas {source_id} and {target_id} are not adjacent")
    if not row.is_stack and direction.axis is not row.orientation:
        raise PolicyError(
            f"Direction {direction.value} does not match {row.orientation.value} row {row.id}"
        )

    result = join(areas, row.id, target_index, source_index - target_index)
    areas.join_preview = None
    anchor = get_parent_row_of(areas.layout, result) if result is not None else None
    merge_same_orientation(areas)
    if result is not None and result not in areas.layout:
        # El row resultante se aplano dentro de su padre
        result = anchor.id if anchor is not None else areas.root_id
    _repair_active(areas, source_id)
    return result


def insert_area(areas: ScreenAreas, area: Area) -> str:
    """
    Agrega *area* al arbol.

    La primera area es la raiz. Las siguientes se colocan a la derecha:
    como ultimo hijo si la raiz es un row horizontal, o envolviendo la
    raiz en un row horizontal nuevo.
    """
    if area.id in areas.areas or area.id in areas.layout:
        raise StructuralError(f"Area {area.id} already exists")

    areas.areas[area.id] = area
    if areas.root_id is None:
        _ensure_area_node(areas, area.id)
        areas.root_id = area.id
        log.info("ADD %s as root", area.id)
        return area.id

    root = areas.layout[areas.root_id]
    target = areas.root_id
    if isinstance(root, RowNode) and root.orientation is Orientation.HORIZONTAL:
        target = root.children[-1].id
    split(areas, target, PlacementRegion.RIGHT, area.id)
    return area.id


def remove_area(
    areas: ScreenAreas, area_id: str, allow_empty: bool = False
) -> None:
    """
    Quita un area y sus datos.

    Salvo con *allow_empty* no se permite dejar el screen vacio; al
    desacoplar la ultima area el screen queda con root_id None.
    """
    if area_id not in areas.areas:
        raise NodeNotFoundError(area_id, kind="Area")
    if not allow_empty and len(areas.areas) <= 1:
        raise PolicyError("Cannot remove the last area of a screen")

    replaced = remove_node(areas, area_id)
    areas.areas.pop(area_id, None)
    _forget_ids(areas, [area_id])
    merge_same_orientation(areas)
    fallback = next(iter(replaced.values()), None)
    _repair_active(areas, fallback)
