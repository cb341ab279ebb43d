"""Puzzle session: generate → hint → submit → adapt."""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Callable, Optional, Sequence

from patternprophet.engine.base_pattern import PatternEngine
from patternprophet.engine.elements import (
    DifficultyMetrics,
    PatternAttempt,
    PatternConfig,
    PatternElement,
    PatternProgress,
    ValidationResult,
)

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"  # Nothing generated yet
    PRESENTING = "presenting"  # Puzzle shown, waiting for a submission
    SOLVED = "solved"  # Last submission was valid


@dataclass
class AttemptOutcome:
    result: ValidationResult
    attempt: PatternAttempt
    previous_difficulty: float
    difficulty: float

    @property
    def difficulty_changed(self) -> bool:
        return self.difficulty != self.previous_difficulty


class PuzzleSession:
    """Drives one user's play of one pattern type.

    The session owns the attempt history for its lifetime. The progress
    record it updates belongs to the host, which must persist it.
    """

    def __init__(
        self,
        engine: PatternEngine,
        history: Optional[Sequence[PatternAttempt]] = None,
        adaptation_window: int = 5,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.engine = engine
        self.history: list[PatternAttempt] = list(history or [])
        self.adaptation_window = adaptation_window
        self._clock = clock
        self.state = SessionState.IDLE
        self.current: Optional[PatternConfig] = None
        self.hints_used = 0
        self.attempts_on_puzzle = 0
        self._started_at: Optional[float] = None

    @property
    def progress(self) -> PatternProgress:
        return self.engine.progress

    @property
    def attempts_remaining(self) -> Optional[int]:
        if self.current is None or self.current.max_attempts is None:
            return None
        return max(0, self.current.max_attempts - self.attempts_on_puzzle)

    def new_puzzle(self) -> PatternConfig:
        self.current = self.engine.generate()
        self.hints_used = 0
        self.attempts_on_puzzle = 0
        self._started_at = self._clock()
        self.state = SessionState.PRESENTING
        return self.current

    def get_hint(self) -> str:
        self.hints_used += 1
        return self.engine.get_hint(self.history)

    def submit(
        self,
        elements: Sequence[PatternElement],
        time_spent: Optional[float] = None,
    ) -> AttemptOutcome:
        """Grade a submission, record it and adapt the difficulty."""
        if self.attempts_remaining == 0:
            raise ValueError("No attempts remaining for this puzzle")

        result = self.engine.validate_solution(elements)
        if self.current is None:
            # validate_solution may have generated a puzzle on our behalf
            self.current = self.engine.last_generated
        if self._started_at is None:
            self._started_at = self._clock()

        if time_spent is None:
            time_spent = max(0.0, self._clock() - self._started_at)

        attempt = PatternAttempt(
            id=str(uuid.uuid4()),
            timestamp=datetime.now(),
            elements=tuple(elements),
            is_correct=result.is_valid,
            confidence=result.confidence,
            time_spent=time_spent,
            hints_used=self.hints_used,
        )
        pattern = self.engine.detect_interaction_pattern(self.history + [attempt])
        attempt = replace(attempt, interaction_pattern=pattern)

        self.history.append(attempt)
        self.attempts_on_puzzle += 1
        self.engine.update_progress(attempt)

        previous = self.engine.progress.current_difficulty
        window = self.history[-self.adaptation_window:]
        difficulty = self.engine.apply_difficulty(self.engine.adapt_difficulty(window))
        if difficulty != previous:
            logger.info("Difficulty %.1f -> %.1f (%s)", previous, difficulty, pattern.value)

        self.state = SessionState.SOLVED if result.is_valid else SessionState.PRESENTING
        return AttemptOutcome(
            result=result,
            attempt=attempt,
            previous_difficulty=previous,
            difficulty=difficulty,
        )

    def metrics(self) -> DifficultyMetrics:
        return self.engine.difficulty_metrics(self.history)
