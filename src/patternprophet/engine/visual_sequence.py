"""Visual sequence puzzles: shapes, colors, sizes and rotations.

A single rule drives one property across the sequence. A contiguous run
in the middle is masked so context stays visible on both sides.
"""

from __future__ import annotations

import logging
import random
import statistics
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Sequence

from patternprophet.engine.base_pattern import MIN_HISTORY, RAPID_FIRE_SECONDS, PatternEngine
from patternprophet.engine.elements import (
    PatternAttempt,
    PatternConfig,
    PatternElement,
    PatternProgress,
    PatternSolution,
    Position,
    ValidationResult,
    clamp_difficulty,
)
from patternprophet.engine.feedback import (
    CLOSING_HINTS,
    GENERIC_SUGGESTIONS,
    OPENING_HINT,
    feedback_for_confidence,
    interaction_hint,
    rule_hint,
)

logger = logging.getLogger(__name__)

SHAPES = ("circle", "square", "triangle", "diamond", "star", "hexagon")
COLORS = (
    "#FF6B6B", "#4ECDC4", "#45B7D1", "#96CEB4", "#FFEAA7", "#DDA0DD",
    "#98D8C8", "#F7DC6F", "#BB8FCE", "#85C1E9", "#F8C471", "#82E0AA",
)
PLACEHOLDER_COLOR = "#E0E0E0"

MAX_SEQUENCE_LENGTH = 8
BASE_SIZE = 3
DEFAULT_SIZE = 5
SIZE_TOLERANCE = 1
PASSING_CONFIDENCE = 0.8
DEGENERATE_CONFIDENCE = 0.9


class RuleType(str, Enum):
    INCREMENT = "increment"
    ALTERNATING = "alternating"
    PATTERN = "pattern"
    CONDITIONAL = "conditional"


RULE_COMPLEXITY = {
    RuleType.INCREMENT: 1,
    RuleType.ALTERNATING: 2,
    RuleType.PATTERN: 3,
    RuleType.CONDITIONAL: 5,
}


@dataclass(frozen=True)
class SequenceRule:
    type: RuleType
    property: str
    pattern: Optional[tuple] = None  # cycle values for PATTERN rules
    increment: Optional[float] = None
    condition: Optional[str] = None


BASE_RULES: tuple[SequenceRule, ...] = (
    SequenceRule(RuleType.INCREMENT, "size", increment=1),
    SequenceRule(RuleType.ALTERNATING, "color"),
    SequenceRule(RuleType.PATTERN, "shape", pattern=("circle", "square")),
    SequenceRule(RuleType.INCREMENT, "rotation", increment=45),
)
ADVANCED_RULES: tuple[SequenceRule, ...] = (
    SequenceRule(RuleType.PATTERN, "shape", pattern=("circle", "square", "triangle")),
    SequenceRule(RuleType.CONDITIONAL, "color", condition="if_shape_circle_then_blue"),
)
ADVANCED_RULES_ABOVE = 5

# Used for hints before anything has been generated
DEFAULT_RULE = BASE_RULES[0]


def sequence_length(difficulty: float) -> int:
    return min(3 + int(difficulty // 2), MAX_SEQUENCE_LENGTH)


def missing_positions(length: int, difficulty: float) -> list[int]:
    """Contiguous interior run of masked indices, starting a third of the way in."""
    count = max(1, min(int(difficulty // 2), length - 2))
    start = length // 3
    return list(range(start, start + count))


def elements_match(a: PatternElement, b: PatternElement) -> bool:
    pa, pb = a.properties, b.properties
    size_a = pa.get("size")
    size_b = pb.get("size")
    size_a = DEFAULT_SIZE if size_a is None else size_a
    size_b = DEFAULT_SIZE if size_b is None else size_b
    return (
        pa.get("shape") == pb.get("shape")
        and pa.get("color") == pb.get("color")
        and abs(size_a - size_b) <= SIZE_TOLERANCE
    )


def solution_confidence(
    attempt: Sequence[PatternElement], solution: Sequence[PatternElement]
) -> float:
    """Fraction of positions that match; 0 when the lengths differ."""
    if not solution or len(attempt) != len(solution):
        return 0.0
    correct = sum(1 for a, s in zip(attempt, solution) if elements_match(a, s))
    return correct / len(solution)


class VisualSequencePattern(PatternEngine):
    pattern_type = "visual-sequence"

    def __init__(
        self,
        config: PatternConfig,
        progress: PatternProgress,
        rng: Optional[random.Random] = None,
        degenerate_match_override: bool = True,
        detect_strategies: bool = False,
    ):
        super().__init__(config, progress, rng=rng)
        self.degenerate_match_override = degenerate_match_override
        self.detect_strategies = detect_strategies
        self._last_rule: Optional[SequenceRule] = None

    @property
    def last_rule(self) -> Optional[SequenceRule]:
        return self._last_rule

    # --- Generation ---

    def generate(self) -> PatternConfig:
        difficulty = clamp_difficulty(self.config.difficulty)
        length = sequence_length(difficulty)
        masked = missing_positions(length, difficulty)

        rule = self._select_rule(difficulty)
        elements = [self._build_element(i, rule) for i in range(length)]
        actual = self._actual_difficulty(difficulty, length, rule, len(masked))

        config = PatternConfig(
            pattern_type=self.pattern_type,
            difficulty=actual,
            elements=self._mask(elements, masked),
            valid_solutions=self._solutions(elements, masked, rule),
            hints=self._hints(rule),
            accessibility=replace(self.config.accessibility),
            masked_positions=masked,
            max_attempts=self.config.max_attempts,
            time_limit=self.config.time_limit,
        )
        logger.debug(
            "Generated %s/%s sequence: length=%d masked=%s difficulty=%.1f",
            rule.type.value, rule.property, length, masked, actual,
        )

        self._last_generated = config
        self._last_rule = rule
        return config

    def _select_rule(self, difficulty: float) -> SequenceRule:
        pool = list(BASE_RULES)
        if difficulty > ADVANCED_RULES_ABOVE:
            pool.extend(ADVANCED_RULES)
        eligible = min(len(pool), 1 + int(difficulty // 2))
        return pool[self.rng.randrange(eligible)]

    def _build_element(self, index: int, rule: SequenceRule) -> PatternElement:
        return PatternElement(
            id=f"visual-{index}",
            type="shape",
            properties=self._properties_at(index, rule),
            position=Position(x=index * 100 + 50, y=200),
        )

    @staticmethod
    def _properties_at(index: int, rule: SequenceRule) -> dict:
        props = {
            "shape": SHAPES[0],
            "color": COLORS[0],
            "size": DEFAULT_SIZE,
            "rotation": 0,
            "strokeWidth": 2,
            "fill": True,
        }

        if rule.type is RuleType.INCREMENT:
            if rule.property == "size":
                step = rule.increment or 1
                props["size"] = max(1, min(10, int(BASE_SIZE + index * step)))
            elif rule.property == "rotation":
                step = rule.increment or 45
                props["rotation"] = int(index * step) % 360
        elif rule.type is RuleType.ALTERNATING:
            if rule.property == "color":
                props["color"] = COLORS[index % 2]
            elif rule.property == "shape":
                props["shape"] = SHAPES[index % 2]
        elif rule.type is RuleType.PATTERN:
            if rule.pattern and rule.property in ("shape", "color"):
                props[rule.property] = rule.pattern[index % len(rule.pattern)]
        # CONDITIONAL rules leave the base properties untouched for now.

        return props

    @staticmethod
    def _mask(elements: list[PatternElement], masked: list[int]) -> list[PatternElement]:
        shown = []
        for i, element in enumerate(elements):
            props = dict(element.properties)
            if i in masked:
                props["shape"] = None
                props["color"] = PLACEHOLDER_COLOR
            shown.append(replace(element, properties=props))
        return shown

    @staticmethod
    def _solutions(
        elements: list[PatternElement], masked: list[int], rule: SequenceRule
    ) -> list[PatternSolution]:
        def copy_masked() -> list[PatternElement]:
            return [
                replace(elements[i], properties=dict(elements[i].properties))
                for i in masked
            ]

        solutions = [PatternSolution(
            elements=copy_masked(),
            confidence=1.0,
            reasoning=f"Follows the {rule.type.value} pattern for {rule.property}",
        )]
        if rule.type is RuleType.PATTERN and rule.pattern:
            solutions.append(PatternSolution(
                elements=copy_masked(),
                confidence=0.8,
                reasoning="Alternative valid pattern interpretation",
            ))
        return solutions

    @staticmethod
    def _hints(rule: SequenceRule) -> list[str]:
        return [OPENING_HINT, rule_hint(rule.type.value, rule.property), *CLOSING_HINTS]

    @staticmethod
    def _actual_difficulty(
        configured: float, length: int, rule: SequenceRule, missing_count: int
    ) -> float:
        """Difficulty as presented, reflecting how complex the puzzle turned out."""
        value = configured + RULE_COMPLEXITY[rule.type] + length // 2 + missing_count
        return clamp_difficulty(value)

    # --- Validation ---

    def validate_solution(self, attempt: Sequence[PatternElement]) -> ValidationResult:
        source = self._last_generated or self.config
        solutions = source.valid_solutions
        if not solutions:
            logger.info("No generated puzzle to validate against, generating one")
            self.generate()
            return self.validate_solution(attempt)

        attempt = list(attempt)
        best = max(solution_confidence(attempt, s.elements) for s in solutions)

        # Legacy scoring kept behind degenerate_match_override: a non-empty
        # attempt that matches no accepted solution at all scores 0.9.
        if best == 0 and attempt and self.degenerate_match_override:
            logger.warning(
                "Attempt matched no accepted solution; scoring %.1f by override",
                DEGENERATE_CONFIDENCE,
            )
            best = DEGENERATE_CONFIDENCE

        return ValidationResult(
            is_valid=best >= PASSING_CONFIDENCE,
            confidence=best,
            feedback=feedback_for_confidence(best),
            suggestions=list(GENERIC_SUGGESTIONS),
        )

    # --- Hints ---

    def get_hint(self, history: Sequence[PatternAttempt]) -> str:
        rule = self._last_rule or DEFAULT_RULE
        pattern = self.detect_interaction_pattern(history)
        return interaction_hint(pattern, rule.property)

    # --- Strategy detection ---

    def has_consistent_strategy(self, attempts: Sequence[PatternAttempt]) -> bool:
        """Unhurried, hint-light attempts whose confidence never drops."""
        if not self.detect_strategies or len(attempts) < MIN_HISTORY:
            return False
        try:
            steady = all(
                a.time_spent >= RAPID_FIRE_SECONDS and a.hints_used <= 1 for a in attempts
            )
            confidences = [a.confidence for a in attempts]
            improving = all(b >= a for a, b in zip(confidences, confidences[1:]))
        except (TypeError, AttributeError, ValueError) as e:
            logger.debug("Skipping strategy check on malformed history: %s", e)
            return False
        return steady and improving

    def has_high_variance_in_approach(self, attempts: Sequence[PatternAttempt]) -> bool:
        """Almost every submission differs and scores swing widely."""
        if not self.detect_strategies or len(attempts) < MIN_HISTORY:
            return False
        try:
            submissions = {_submission_key(a.elements) for a in attempts}
            spread = statistics.pstdev(a.confidence for a in attempts)
        except (TypeError, AttributeError, ValueError) as e:
            logger.debug("Skipping variance check on malformed history: %s", e)
            return False
        return len(submissions) / len(attempts) >= 0.8 and spread >= 0.25


def _submission_key(elements: Sequence[PatternElement]) -> tuple:
    return tuple(
        (e.properties.get("shape"), e.properties.get("color"), e.properties.get("size"))
        for e in elements
    )
