"""
areatiler.core - Public engine facade and its support modules.

This package contains:
    - errors   : LayoutError taxonomy (structural / geometry / policy)
    - registry : AreaTypeRegistry - injected area type capability
    - engine   : LayoutEngine class - transactions, events and queries
    - debounce : TrailingDebouncer for caller-side input coalescing
"""

from areatiler.core.errors import (
    LayoutError,
    StructuralError,
    GeometryError,
    PolicyError,
)
from areatiler.core.registry import AreaTypeRegistry, AreaTypeDescriptor
from areatiler.core.engine import LayoutEngine, EngineEvent
from areatiler.core.debounce import TrailingDebouncer

__all__ = [
    "LayoutError", "StructuralError", "GeometryError", "PolicyError",
    "AreaTypeRegistry", "AreaTypeDescriptor",
    "LayoutEngine", "EngineEvent",
    "TrailingDebouncer",
]
