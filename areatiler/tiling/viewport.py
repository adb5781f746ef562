"""
areatiler.tiling.viewport - Calculo de viewports.

Subdivide recursivamente el rectangulo raiz segun el arbol de layout:
    - Row horizontal : columnas proporcionales a los `size` de los hijos.
    - Row vertical   : filas proporcionales a los `size` de los hijos.
    - Row stack      : todos los hijos reciben el rectangulo del row
                       (solo el tab activo se dibuja, pero los demas
                       conservan un rectangulo para no perder continuidad).

El resultado es un dato derivado: se recalcula completo a partir de
(layout, root_id, container) y nunca se edita a mano. Con las mismas
entradas produce exactamente la misma salida.
"""

from __future__ import annotations

import logging
from typing import Mapping

from areatiler.tiling.rect import Rect
from areatiler.tiling.tree import Node, Orientation, RowNode

log = logging.getLogger(__name__)


def compute_viewports(
    layout: Mapping[str, Node],
    root_id: str | None,
    container: Rect | None,
) -> dict[str, Rect]:
    """
    Calcula el rectangulo de cada nodo alcanzable desde *root_id*.

    Args:
        layout:    Mapa plano id -> nodo.
        root_id:   Nodo raiz del arbol (None si el arbol esta vacio).
        container: Rectangulo raiz que entrega el colaborador de render.

    Returns:
        Mapa id -> Rect. Vacio si no hay raiz o el contenedor es invalido.
    """
    if container is None or container.is_empty:
        log.debug("compute_viewports: contenedor invalido %s", container)
        return {}
    if root_id is None or root_id not in layout:
        return {}

    viewports: dict[str, Rect] = {}
    # Pila explicita para no depender del limite de recursion
    pending: list[tuple[str, Rect]] = [(root_id, container)]

    while pending:
        node_id, rect = pending.pop()
        if node_id in viewports:
            log.warning("compute_viewports: nodo %s alcanzado dos veces", node_id)
            continue
        viewports[node_id] = rect

        node = layout.get(node_id)
        if not isinstance(node, RowNode) or not node.children:
            continue

        child_rects = _subdivide(node, rect)
        # Apilar en orden inverso para visitar los hijos de izquierda a derecha
        for child, child_rect in reversed(list(zip(node.children, child_rects))):
            if child.id not in layout:
                log.warning(
                    "compute_viewports: row %s referencia nodo inexistente %s",
                    node_id,
                    child.id,
                )
                continue
            pending.append((child.id, child_rect))

    log.debug(
        "compute_viewports: %d viewports | root=%s | container=%s",
        len(viewports),
        root_id,
        container,
    )
    return viewports


def _subdivide(row: RowNode, rect: Rect) -> list[Rect]:
    """Rectangulos de los hijos de *row* dentro de *rect*."""
    if row.orientation is Orientation.STACK:
        return [rect] * len(row.children)

    horizontal = row.orientation is Orientation.HORIZONTAL
    return rect.slice_weighted([c.size for c in row.children], horizontal)
