"""
areatiler.tiling - Motor de layout (arbol de areas, viewports y colocacion).

Este paquete contiene:
    - vec2           : Vec2 para posiciones del puntero
    - rect           : Estructura Rect para geometria de areas
    - tree           : Modelo del arbol (nodos, roles, accesores, validacion)
    - viewport       : Calculo de viewports a partir del arbol
    - placement      : Resolucion del objetivo y la region de un drop
    - screen         : Estado de un screen (ScreenAreas, Screen)
    - operations     : split / stack / join / simplify y operaciones compuestas
    - finalizer      : Transaccion de colocacion por drag & drop
    - screen_manager : ScreenManager - coleccion de screens

Aqui solo se reexportan los modulos sin dependencias de configuracion;
el resto se importa desde su modulo.
"""

from areatiler.tiling.vec2 import Vec2
from areatiler.tiling.rect import Rect
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

__all__ = [
    "Vec2",
    "Rect",
    "Area",
    "AreaNode",
    "AreaRole",
    "Orientation",
    "RowChild",
    "RowNode",
    "validate_tree",
    "compute_viewports",
]
