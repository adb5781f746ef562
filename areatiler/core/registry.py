"""
areatiler.core.registry - Registry of area types.

Maps area type tags (as used in Area.type) to a descriptor with the
role the type belongs to and the state a fresh area starts with. The
engine only needs the role; the rest is carried for the rendering
collaborator.

The registry is injected into the LayoutEngine rather than kept as a
module global:
    registry = AreaTypeRegistry()
    registry.register("text-note", role=AreaRole.SELF)
    engine = LayoutEngine(registry=registry)

It can also be used as a decorator on a factory of default state:
    @registry.area_type("timeline", role=AreaRole.LEAD)
    def timeline_state():
        return {"zoom": 1.0}
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from areatiler.tiling.tree import AreaRole

log = logging.getLogger(__name__)


# Factory for the initial state of a new area of a given type
StateFactory = Callable[[], dict[str, Any]]


@dataclass(frozen=True, slots=True)
class AreaTypeDescriptor:
    """Metadata for a registered area type."""

    type: str
    role: AreaRole = AreaRole.SELF
    display_name: str = ""
    default_state: dict[str, Any] = field(default_factory=dict)
    category: str = "general"

    def new_state(self) -> dict[str, Any]:
        """Independent copy of the default state."""
        return copy.deepcopy(self.default_state)


class AreaTypeRegistry:
    """
    Registry that maps area type tags to descriptors.

    Unknown types are not an error by default: they resolve to the SELF
    role, so areas from a newer collaborator still lay out.
    """

    def __init__(self) -> None:
        self._types: dict[str, AreaTypeDescriptor] = {}

    @property
    def count(self) -> int:
        return len(self._types)

    @property
    def type_names(self) -> list[str]:
        """All registered type tags, sorted."""
        return sorted(self._types.keys())

    def register(
        self,
        area_type: str,
        role: AreaRole | str = AreaRole.SELF,
        display_name: str = "",
        default_state: dict[str, Any] | None = None,
        category: str = "general",
    ) -> AreaTypeDescriptor:
        """
        Register an area type.

        If the type already exists it is replaced.

        Args:
            area_type:     Type tag (e.g. "text-note").
            role:          LEAD / FOLLOW / SELF (enum member or value).
            display_name:  Human-readable name for menus.
            default_state: State a new area of this type starts with.
            category:      Grouping category for menus.
        """
        if area_type in self._types:
            log.info("Area type replaced: %s", area_type)

        descriptor = AreaTypeDescriptor(
            type=area_type,
            role=AreaRole(role),
            display_name=display_name or area_type,
            default_state=dict(default_state or {}),
            category=category,
        )
        self._types[area_type] = descriptor
        log.debug("Area type registered: %s (%s)", area_type, descriptor.role.value)
        return descriptor

    def unregister(self, area_type: str) -> bool:
        """Remove a type by tag. Returns True if it existed."""
        descriptor = self._types.pop(area_type, None)
        if descriptor is not None:
            log.debug("Area type unregistered: %s", area_type)
            return True
        return False

    def lookup(self, area_type: str) -> AreaTypeDescriptor | None:
        """Look up a type by tag."""
        return self._types.get(area_type)

    def has(self, area_type: str) -> bool:
        """Check if a type is registered."""
        return area_type in self._types

    def role_for(self, area_type: str) -> AreaRole:
        """Role of a type, SELF when it is not registered."""
        descriptor = self._types.get(area_type)
        return descriptor.role if descriptor is not None else AreaRole.SELF

    def default_state_for(self, area_type: str) -> dict[str, Any]:
        descriptor = self._types.get(area_type)
        return descriptor.new_state() if descriptor is not None else {}

    def area_type(
        self,
        area_type: str,
        role: AreaRole | str = AreaRole.SELF,
        display_name: str = "",
        category: str = "general",
    ) -> Callable[[StateFactory], StateFactory]:
        """
        Decorator to register a type whose default state comes from a
        factory function.

        Usage:
            @registry.area_type("timeline", role="lead")
            def timeline_state():
                return {"zoom": 1.0}
        """

        def decorator(fn: StateFactory) -> StateFactory:
            self.register(
                area_type,
                role=role,
                display_name=display_name,
                default_state=fn(),
                category=category,
            )
            return fn

        return decorator

    def list_types(self, category: str | None = None) -> list[AreaTypeDescriptor]:
        """
        List registered types, optionally filtered by category.

        Returns:
            Sorted list of AreaTypeDescriptor objects.
        """
        types = list(self._types.values())
        if category is not None:
            types = [t for t in types if t.category == category]
        return sorted(types, key=lambda t: t.type)

    def dump_state(self) -> str:
        """Return a formatted string of all types for debugging."""
        lines = [
            f"=== AreaTypeRegistry: {len(self._types)} types ===",
            "",
        ]
        for desc in self.list_types():
            name = f"  {desc.display_name}" if desc.display_name != desc.type else ""
            lines.append(f"  [{desc.category}] {desc.type} ({desc.role.value}){name}")
        return "\n".join(lines)
