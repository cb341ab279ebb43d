"""Tests for pattern type dispatch and default records."""

from __future__ import annotations

import random

import pytest

from patternprophet.engine.factory import PatternFactory, PatternType, UnsupportedPatternType
from patternprophet.engine.visual_sequence import VisualSequencePattern


def test_creates_visual_sequence():
    config = PatternFactory.get_default_config("visual-sequence")
    progress = PatternFactory.get_default_progress("user-1", "visual-sequence")
    engine = PatternFactory.create_pattern("visual-sequence", config, progress, rng=random.Random(1))
    assert isinstance(engine, VisualSequencePattern)
    assert engine.generate().pattern_type == "visual-sequence"


def test_passes_engine_options():
    config = PatternFactory.get_default_config(PatternType.VISUAL_SEQUENCE)
    progress = PatternFactory.get_default_progress("user-1", PatternType.VISUAL_SEQUENCE)
    engine = PatternFactory.create_pattern(
        PatternType.VISUAL_SEQUENCE, config, progress, degenerate_match_override=False
    )
    assert engine.degenerate_match_override is False


@pytest.mark.parametrize("name", ["number", "musical", "spatial", "rule-based"])
def test_declared_types_are_unsupported(name):
    config = PatternFactory.get_default_config(name)
    progress = PatternFactory.get_default_progress("user-1", name)
    with pytest.raises(UnsupportedPatternType, match=name) as exc_info:
        PatternFactory.create_pattern(name, config, progress)
    assert exc_info.value.pattern_type is PatternType(name)


def test_unknown_type():
    config = PatternFactory.get_default_config("visual-sequence")
    progress = PatternFactory.get_default_progress("user-1", "visual-sequence")
    with pytest.raises(ValueError, match="Unknown pattern type"):
        PatternFactory.create_pattern("chess", config, progress)


def test_unsupported_is_distinguishable_from_unknown():
    with pytest.raises(ValueError) as exc_info:
        PatternType.parse("chess")
    assert not isinstance(exc_info.value, UnsupportedPatternType)


def test_default_config():
    config = PatternFactory.get_default_config("visual-sequence")
    assert config.difficulty == 3
    assert config.elements == []
    assert config.valid_solutions == []
    assert config.hints == []
    assert all(config.accessibility.to_dict().values())


def test_default_config_difficulty():
    assert PatternFactory.get_default_config("visual-sequence", difficulty=7).difficulty == 7


def test_default_progress():
    progress = PatternFactory.get_default_progress("user-9", "visual-sequence")
    assert progress.user_id == "user-9"
    assert progress.pattern_type == "visual-sequence"
    assert progress.current_difficulty == 1
    assert progress.total_attempts == 0
    assert progress.successful_attempts == 0
    assert progress.average_time_to_solve == 0
    assert progress.mastery_level == 0
    assert progress.preferred_strategies == []


def test_available_types():
    assert PatternFactory.available_types() == [PatternType.VISUAL_SEQUENCE]
    assert PatternFactory.is_implemented("visual-sequence")
    assert not PatternFactory.is_implemented("musical")


def test_register_new_type(monkeypatch):
    monkeypatch.setattr(PatternFactory, "_registry", dict(PatternFactory._registry))
    PatternFactory.register("number", VisualSequencePattern)
    config = PatternFactory.get_default_config("number")
    progress = PatternFactory.get_default_progress("user-1", "number")
    assert isinstance(PatternFactory.create_pattern("number", config, progress), VisualSequencePattern)
