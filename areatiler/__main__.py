"""
areatiler - Entry point.

Run with:  python -m areatiler

Drives a scripted session against a LayoutEngine (splits, a drag & drop
onto an edge, a drop onto a stack, a resize, a join, screen operations)
and prints the resulting state after each step.
"""

import logging
import sys
from typing import Any

from areatiler.config.defaults import EngineOptions
from areatiler.core.engine import EngineEvent, LayoutEngine
from areatiler.core.registry import AreaTypeRegistry
from areatiler.tiling.tree import AreaRole


class SafeStreamHandler(logging.StreamHandler):
    """Handler that replaces unencodable characters instead of crashing."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            enc = getattr(self.stream, "encoding", "utf-8") or "utf-8"
            safe = msg.encode(enc, errors="replace").decode(enc, errors="replace")
            self.stream.write(safe + self.terminator)
            self.flush()
        except Exception:
            self.handleError(record)


def setup_logging() -> None:
    """Configure logging for the demo."""
    fmt = "%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s"
    handler = SafeStreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt, datefmt="%H:%M:%S"))

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    # Quiet down noisy loggers
    logging.getLogger("areatiler.tiling.viewport").setLevel(logging.INFO)
    logging.getLogger("areatiler.tiling.placement").setLevel(logging.INFO)


def on_event(event: EngineEvent, payload: Any, engine: LayoutEngine) -> None:
    """Global event handler that prints everything."""
    print(f"  EVENT: {event.value:<16s} | {payload!r}")


def build_registry() -> AreaTypeRegistry:
    """Area types used by the demo."""
    registry = AreaTypeRegistry()
    registry.register("text-note", role=AreaRole.SELF, display_name="Text note",
                      default_state={"content": ""})
    registry.register("timeline", role=AreaRole.LEAD, display_name="Timeline",
                      category="editor")
    registry.register("inspector", role=AreaRole.FOLLOW, display_name="Inspector",
                      category="editor")
    return registry


def step(title: str, engine: LayoutEngine) -> None:
    print("")
    print("=" * 60)
    print(f"  {title}")
    print("=" * 60)
    print(engine.dump_state())


def main() -> None:
    setup_logging()

    registry = build_registry()
    engine = LayoutEngine(
        options=EngineOptions(),
        registry=registry,
        container_rect={"left": 0, "top": 0, "width": 1200, "height": 800},
    )
    engine.on_all(on_event)
    print("\n" + registry.dump_state())
    step("Initial screen", engine)

    # Split the seed area horizontally, new area on the right
    engine.split_area("area-1", "horizontal", "se")
    step("split_area(area-1, horizontal, se)", engine)

    # Drag a new timeline onto the bottom edge of the right-hand area
    right = engine.get_viewport("area-2")
    engine.set_area_to_open((right.left, right.top), {"type": "timeline"})
    engine.update_area_to_open_position((right.center.x, right.bottom - 5))
    engine.finalize_area_placement(target_id="area-2")
    step("drop timeline on the bottom edge of area-2", engine)

    # Drop an inspector onto the centre of the left area: a stack
    left = engine.get_viewport("area-1")
    engine.set_area_to_open(left.center.to_tuple(), {"type": "inspector"})
    engine.finalize_area_placement(target_id="area-1")
    step("drop inspector on the centre of area-1", engine)

    # Resize the root columns
    root_id = engine.state.root_id
    engine.set_row_sizes(root_id, [0.3, 0.7])
    step(f"set_row_sizes({root_id}, [0.3, 0.7])", engine)

    # Join the timeline back into area-2
    engine.join_or_move_area("area-2", "area-4", "down")
    step("join_or_move_area(area-2, area-4, down)", engine)

    # Screens
    second = engine.add_screen()
    engine.duplicate_screen(second)
    engine.switch_screen("1")
    engine.detach_area("area-2")
    step("add, duplicate, switch back and detach area-2", engine)

    for screen_id in list(engine.screens.screen_ids):
        if screen_id != "1":
            engine.remove_screen(screen_id)
    engine.remove_screen("1")
    step("remove every screen (the last classic one stays)", engine)

    print("")
    print(f"  Errors on screen 1: {engine.get_area_errors()}")


if __name__ == "__main__":
    main()
