"""Tests for engine options."""

import dataclasses
import logging

import pytest

from areatiler.config.defaults import EngineOptions
from areatiler.tiling.vec2 import Vec2


class TestEngineOptions:
    """Tests for EngineOptions."""

    def test_defaults(self):
        options = EngineOptions()
        assert options.stack_zone_ratio == 0.3
        assert options.detection_size == Vec2(300, 200)
        assert options.default_area_type == "text-note"
        assert options.allow_stack_mixed_roles is True
        assert options.max_errors == 50

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            EngineOptions().max_errors = 3

    def test_default_state_copies(self):
        options = EngineOptions()
        state = options.new_default_state()
        state["content"] = "edited"
        assert options.new_default_state() == {"content": "New Screen"}
        assert EngineOptions().default_area_state is not options.default_area_state

    def test_from_mapping(self, caplog):
        with caplog.at_level(logging.WARNING, logger="areatiler.config.defaults"):
            options = EngineOptions.from_mapping(
                {"detection_size": (40, 20), "max_errors": 5, "colour": "red"}
            )
        assert options.detection_size == Vec2(40, 20)
        assert options.max_errors == 5
        assert "colour" in caplog.text

    def test_from_mapping_without_detection(self):
        assert EngineOptions.from_mapping({"detection_size": None}).detection_size is None
