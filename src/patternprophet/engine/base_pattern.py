"""Pattern engine contract and the adaptation logic shared by every type.

Concrete pattern types implement ``generate``, ``validate_solution`` and
``get_hint``. Difficulty adaptation, interaction classification and
progress updates live here and are not meant to be overridden, so every
type reacts to frustration the same way. The two strategy checks are the
only per-type hooks in classification.
"""

from __future__ import annotations

import logging
import random
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, Sequence

from patternprophet.engine.elements import (
    DifficultyMetrics,
    InteractionPattern,
    PatternAttempt,
    PatternConfig,
    PatternElement,
    PatternProgress,
    ValidationResult,
    clamp_difficulty,
    clamp_unit,
)

logger = logging.getLogger(__name__)

FRUSTRATION_THRESHOLD = 0.7
SUCCESS_CONFIDENCE = 0.7
MASTERY_DECAY = 0.9
MASTERY_WEIGHT = 0.1

# Interaction classification
MIN_HISTORY = 3
RECENT_WINDOW = 5
RAPID_FIRE_SECONDS = 2.0
MAX_RECENT_INCORRECT = 3


class PatternEngine(ABC):
    """Base class for all pattern types."""

    pattern_type: str = ""

    def __init__(
        self,
        config: PatternConfig,
        progress: PatternProgress,
        rng: Optional[random.Random] = None,
    ):
        self.config = config
        self.progress = progress
        self.rng = rng or random.Random()
        self._last_generated: Optional[PatternConfig] = None

    # --- Per-type operations ---

    @abstractmethod
    def generate(self) -> PatternConfig:
        """Produce a new puzzle at the configured difficulty."""

    @abstractmethod
    def validate_solution(self, attempt: Sequence[PatternElement]) -> ValidationResult:
        """Score a submission against the accepted solutions (partial credit)."""

    @abstractmethod
    def get_hint(self, history: Sequence[PatternAttempt]) -> str:
        """Return one hint adapted to the user's interaction pattern."""

    # --- Extension points for classification ---

    def has_consistent_strategy(self, attempts: Sequence[PatternAttempt]) -> bool:
        return False

    def has_high_variance_in_approach(self, attempts: Sequence[PatternAttempt]) -> bool:
        return False

    # --- Shared algorithms ---

    @staticmethod
    def calculate_success_rate(attempts: Sequence[PatternAttempt]) -> float:
        if not attempts:
            return 0.5
        successful = sum(1 for a in attempts if _counts_as_success(a))
        return successful / len(attempts)

    @staticmethod
    def calculate_frustration_level(attempts: Sequence[PatternAttempt]) -> float:
        """Average per-attempt frustration score, clamped to [0, 1]."""
        if not attempts:
            return 0.0

        score = 0.0
        for attempt in attempts:
            # Rapid low-confidence guessing
            if attempt.time_spent < 3 and attempt.confidence < 0.3:
                score += 0.3
            if attempt.hints_used > 2:
                score += 0.2
            if not attempt.is_correct and attempt.confidence < 0.1:
                score += 0.1

        return clamp_unit(score / len(attempts))

    def adapt_difficulty(self, recent_attempts: Sequence[PatternAttempt]) -> float:
        """Return the next difficulty for this user and pattern type.

        High frustration always wins: it drops difficulty by 2 before the
        success rate is looked at.
        """
        current = self.progress.current_difficulty
        success_rate = self.calculate_success_rate(recent_attempts)
        frustration = self.calculate_frustration_level(recent_attempts)

        if frustration > FRUSTRATION_THRESHOLD:
            logger.info(
                "Frustration %.2f above threshold, dropping difficulty from %.1f",
                frustration, current,
            )
            return clamp_difficulty(current - 2)

        if success_rate > 0.8 and frustration < 0.3:
            return clamp_difficulty(current + 0.5)
        if success_rate < 0.4:
            return clamp_difficulty(current - 0.5)
        return clamp_difficulty(current)

    def detect_interaction_pattern(
        self, attempts: Sequence[PatternAttempt]
    ) -> InteractionPattern:
        if len(attempts) < MIN_HISTORY:
            return InteractionPattern.EXPLORATORY

        recent = list(attempts)[-RECENT_WINDOW:]
        avg_time = sum(a.time_spent for a in recent) / len(recent)
        incorrect = sum(1 for a in recent if not a.is_correct)

        if avg_time < RAPID_FIRE_SECONDS and incorrect > MAX_RECENT_INCORRECT:
            return InteractionPattern.FRUSTRATED
        if self.has_consistent_strategy(recent):
            return InteractionPattern.SYSTEMATIC
        if self.has_high_variance_in_approach(recent):
            return InteractionPattern.RANDOM
        return InteractionPattern.EXPLORATORY

    def update_progress(self, attempt: PatternAttempt) -> PatternProgress:
        """Fold one attempt into the progress record and return it."""
        progress = self.progress
        progress.total_attempts += 1
        if _counts_as_success(attempt):
            progress.successful_attempts += 1

        progress.average_time_to_solve = (
            progress.average_time_to_solve * (progress.total_attempts - 1)
            + attempt.time_spent
        ) / progress.total_attempts
        progress.last_played = datetime.now()

        recent_success = self.calculate_success_rate([attempt])
        progress.mastery_level = clamp_unit(
            progress.mastery_level * MASTERY_DECAY + recent_success * MASTERY_WEIGHT
        )
        return progress

    def apply_difficulty(self, difficulty: float) -> float:
        """Set the difficulty used by the next ``generate`` call."""
        difficulty = clamp_difficulty(difficulty)
        self.progress.current_difficulty = difficulty
        self.config.difficulty = difficulty
        return difficulty

    def difficulty_metrics(self, attempts: Sequence[PatternAttempt]) -> DifficultyMetrics:
        config = self._last_generated or self.config
        load = len(config.masked_positions) + len(config.elements) // 2
        if attempts:
            avg_time = sum(a.time_spent for a in attempts) / len(attempts)
            error_rate = sum(1 for a in attempts if not a.is_correct) / len(attempts)
        else:
            avg_time = 0.0
            error_rate = 0.0
        return DifficultyMetrics(
            complexity=clamp_difficulty(config.difficulty),
            cognitive_load=clamp_difficulty(load),
            time_to_solve=avg_time,
            error_rate=error_rate,
            frustration_level=self.calculate_frustration_level(attempts),
        )

    @property
    def last_generated(self) -> Optional[PatternConfig]:
        return self._last_generated


def _counts_as_success(attempt: PatternAttempt) -> bool:
    return attempt.is_correct or attempt.confidence > SUCCESS_CONFIDENCE
