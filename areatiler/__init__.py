"""
areatiler - Embeddable tiling-layout engine.

Keeps a tree of splittable, joinable and stackable areas per screen and
resolves drag-based placement into that tree. Rendering, input capture
and persistence belong to the caller.
"""

from areatiler.config import EngineOptions
from areatiler.core.engine import LayoutEngine, EngineEvent
from areatiler.core.registry import AreaTypeRegistry
from areatiler.tiling.finalizer import AreaDescriptor
from areatiler.tiling.placement import Direction, PlacementRegion
from areatiler.tiling.rect import Rect
from areatiler.tiling.tree import AreaRole, Orientation
from areatiler.tiling.vec2 import Vec2

__version__ = "0.1.0"

__all__ = [
    "EngineOptions",
    "LayoutEngine",
    "EngineEvent",
    "AreaTypeRegistry",
    "AreaDescriptor",
    "Direction",
    "PlacementRegion",
    "Rect",
    "AreaRole",
    "Orientation",
    "Vec2",
]
