"""Shared pytest fixtures for areatiler tests."""

import pytest

from areatiler.config.defaults import EngineOptions
from areatiler.core.engine import EngineEvent, LayoutEngine
from areatiler.core.registry import AreaTypeRegistry
from areatiler.tiling.tree import AreaRole


@pytest.fixture
def registry():
    """Registry with one type per role."""
    reg = AreaTypeRegistry()
    reg.register("text-note", role=AreaRole.SELF, default_state={"content": ""})
    reg.register("timeline", role=AreaRole.LEAD)
    reg.register("inspector", role=AreaRole.FOLLOW)
    return reg


@pytest.fixture
def engine(registry):
    """Engine rendering into a 1200x800 container."""
    return LayoutEngine(
        options=EngineOptions(),
        registry=registry,
        container_rect=(0, 0, 1200, 800),
    )


@pytest.fixture
def events(engine):
    """List collecting every (event, payload) the engine emits."""
    received = []

    def record(event, payload, _engine):
        received.append((event, payload))

    engine.on_all(record)
    return received


@pytest.fixture
def state_changes(events):
    def count():
        return sum(1 for ev, _ in events if ev is EngineEvent.STATE_CHANGED)

    return count
