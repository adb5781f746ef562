"""
areatiler.core.errors - Layout engine exceptions.

Primitives in areatiler.tiling raise these; LayoutEngine catches them at
its public boundary and turns them into entries of the screen's error log.
"""


class LayoutError(Exception):
    """Base exception for recoverable layout failures."""

    pass


class StructuralError(LayoutError):
    """Raised when an id is missing or the tree shape forbids the operation."""

    pass


class NodeNotFoundError(StructuralError):
    """Raised when a node or area id is not in the current tree."""

    def __init__(self, node_id, kind="Node"):
        self.node_id = node_id
        super().__init__(f"{kind} not found: {node_id}")


class GeometryError(LayoutError):
    """Raised when no drop target or viewport is available."""

    pass


class PolicyError(LayoutError):
    """Raised when an operation is valid structurally but not allowed."""

    pass


class RoleMismatchError(PolicyError):
    """Raised when stacking areas of different roles is not allowed."""

    def __init__(self, target_role, new_role):
        self.target_role = target_role
        self.new_role = new_role
        super().__init__(
            f"Cannot stack a {new_role} area onto a {target_role} area"
        )


class ScreenNotFoundError(PolicyError):
    """Raised when a screen id does not exist."""

    def __init__(self, screen_id):
        self.screen_id = screen_id
        super().__init__(f"Screen not found: {screen_id}")
