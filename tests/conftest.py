"""Shared fixtures for Pattern Prophet tests."""

from __future__ import annotations

import random
import uuid
from datetime import datetime

import pytest

from patternprophet.engine.elements import (
    InteractionPattern,
    PatternAttempt,
    PatternConfig,
    PatternProgress,
)
from patternprophet.engine.visual_sequence import VisualSequencePattern


class FixedChoice(random.Random):
    """Random source that always picks the same rule index."""

    def __init__(self, index: int):
        super().__init__(0)
        self.index = index

    def randrange(self, *args, **kwargs):
        return self.index


def make_attempt(
    is_correct: bool = True,
    confidence: float = 1.0,
    time_spent: float = 10.0,
    hints_used: int = 0,
    elements=(),
    pattern: InteractionPattern = InteractionPattern.EXPLORATORY,
) -> PatternAttempt:
    return PatternAttempt(
        id=str(uuid.uuid4()),
        timestamp=datetime(2024, 1, 1, 12, 0, 0),
        elements=tuple(elements),
        is_correct=is_correct,
        confidence=confidence,
        time_spent=time_spent,
        hints_used=hints_used,
        interaction_pattern=pattern,
    )


@pytest.fixture
def progress():
    return PatternProgress(user_id="user-1", pattern_type="visual-sequence", current_difficulty=5)


def make_pattern(difficulty: float = 3, rng=None, progress=None, **options) -> VisualSequencePattern:
    config = PatternConfig(pattern_type="visual-sequence", difficulty=difficulty)
    progress = progress or PatternProgress(
        user_id="user-1", pattern_type="visual-sequence", current_difficulty=difficulty
    )
    return VisualSequencePattern(config, progress, rng=rng or random.Random(42), **options)


@pytest.fixture
def pattern():
    return make_pattern()
