"""Value types shared by every pattern engine.

Records serialize to camelCase dicts so the host application can store
and exchange them without knowing about these classes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

MIN_DIFFICULTY = 1.0
MAX_DIFFICULTY = 10.0


def clamp_difficulty(value: float) -> float:
    return max(MIN_DIFFICULTY, min(MAX_DIFFICULTY, value))


def clamp_unit(value: float) -> float:
    """Clamp a confidence/mastery style score into [0, 1]."""
    return max(0.0, min(1.0, value))


class InteractionPattern(str, Enum):
    SYSTEMATIC = "systematic"
    RANDOM = "random"
    EXPLORATORY = "exploratory"
    FRUSTRATED = "frustrated"


def _parse_time(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if value:
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        return datetime.fromisoformat(value)
    return datetime.now()


@dataclass
class Position:
    x: float
    y: float

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}


@dataclass
class PatternElement:
    """One visual unit in a sequence.

    ``properties`` is a free-form bag so other pattern types can carry
    their own keys; the visual generator uses shape, color, size,
    rotation, strokeWidth and fill.
    """
    id: str
    type: str
    properties: dict[str, Any] = field(default_factory=dict)
    position: Optional[Position] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "properties": dict(self.properties),
            "position": self.position.to_dict() if self.position else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> PatternElement:
        pos = data.get("position")
        return cls(
            id=data.get("id", ""),
            type=data.get("type", "shape"),
            properties=dict(data.get("properties") or {}),
            position=Position(x=pos["x"], y=pos["y"]) if pos else None,
        )


@dataclass
class PatternSolution:
    elements: list[PatternElement]
    confidence: float = 1.0
    reasoning: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "elements": [e.to_dict() for e in self.elements],
            "confidence": self.confidence,
            "reasoning": self.reasoning,
        }

    @classmethod
    def from_dict(cls, data: dict) -> PatternSolution:
        return cls(
            elements=[PatternElement.from_dict(e) for e in data.get("elements", [])],
            confidence=data.get("confidence", 1.0),
            reasoning=data.get("reasoning"),
        )


@dataclass
class AccessibilityFeatures:
    high_contrast: bool = True
    reduced_motion: bool = True
    audio_descriptions: bool = True
    keyboard_navigation: bool = True

    def to_dict(self) -> dict:
        return {
            "highContrast": self.high_contrast,
            "reducedMotion": self.reduced_motion,
            "audioDescriptions": self.audio_descriptions,
            "keyboardNavigation": self.keyboard_navigation,
        }

    @classmethod
    def from_dict(cls, data: dict) -> AccessibilityFeatures:
        return cls(
            high_contrast=data.get("highContrast", True),
            reduced_motion=data.get("reducedMotion", True),
            audio_descriptions=data.get("audioDescriptions", True),
            keyboard_navigation=data.get("keyboardNavigation", True),
        )


@dataclass
class PatternConfig:
    """A complete puzzle instance, or a seed for generating one."""
    pattern_type: str
    difficulty: float
    elements: list[PatternElement] = field(default_factory=list)
    valid_solutions: list[PatternSolution] = field(default_factory=list)
    hints: list[str] = field(default_factory=list)
    accessibility: AccessibilityFeatures = field(default_factory=AccessibilityFeatures)
    masked_positions: list[int] = field(default_factory=list)
    max_attempts: Optional[int] = None
    time_limit: Optional[float] = None  # seconds

    def to_dict(self) -> dict:
        return {
            "patternType": self.pattern_type,
            "difficulty": self.difficulty,
            "elements": [e.to_dict() for e in self.elements],
            "validSolutions": [s.to_dict() for s in self.valid_solutions],
            "hints": list(self.hints),
            "accessibilityFeatures": self.accessibility.to_dict(),
            "maskedPositions": list(self.masked_positions),
            "maxAttempts": self.max_attempts,
            "timeLimit": self.time_limit,
        }

    @classmethod
    def from_dict(cls, data: dict) -> PatternConfig:
        return cls(
            pattern_type=data["patternType"],
            difficulty=data.get("difficulty", 3),
            elements=[PatternElement.from_dict(e) for e in data.get("elements", [])],
            valid_solutions=[
                PatternSolution.from_dict(s) for s in data.get("validSolutions", [])
            ],
            hints=list(data.get("hints", [])),
            accessibility=AccessibilityFeatures.from_dict(
                data.get("accessibilityFeatures") or {}
            ),
            masked_positions=list(data.get("maskedPositions", [])),
            max_attempts=data.get("maxAttempts"),
            time_limit=data.get("timeLimit"),
        )


@dataclass(frozen=True)
class PatternAttempt:
    """One submission. Never modified after it is recorded."""
    id: str
    timestamp: datetime
    elements: tuple[PatternElement, ...]
    is_correct: bool
    confidence: float
    time_spent: float  # seconds
    hints_used: int = 0
    interaction_pattern: InteractionPattern = InteractionPattern.EXPLORATORY

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "elements": [e.to_dict() for e in self.elements],
            "isCorrect": self.is_correct,
            "confidence": self.confidence,
            "timeSpent": self.time_spent,
            "hintsUsed": self.hints_used,
            "interactionPattern": self.interaction_pattern.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> PatternAttempt:
        return cls(
            id=data.get("id", ""),
            timestamp=_parse_time(data.get("timestamp")),
            elements=tuple(PatternElement.from_dict(e) for e in data.get("elements", [])),
            is_correct=bool(data.get("isCorrect", False)),
            confidence=data.get("confidence", 0.0),
            time_spent=data.get("timeSpent", 0.0),
            hints_used=data.get("hintsUsed", 0),
            interaction_pattern=InteractionPattern(
                data.get("interactionPattern", InteractionPattern.EXPLORATORY.value)
            ),
        )


@dataclass
class PatternProgress:
    """Rolling per-user, per-pattern-type state. The host persists it."""
    user_id: str
    pattern_type: str
    current_difficulty: float = 1.0
    total_attempts: int = 0
    successful_attempts: int = 0
    average_time_to_solve: float = 0.0
    preferred_strategies: list[str] = field(default_factory=list)
    last_played: datetime = field(default_factory=datetime.now)
    mastery_level: float = 0.0

    def to_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "patternType": self.pattern_type,
            "currentDifficulty": self.current_difficulty,
            "totalAttempts": self.total_attempts,
            "successfulAttempts": self.successful_attempts,
            "averageTimeToSolve": self.average_time_to_solve,
            "preferredStrategies": list(self.preferred_strategies),
            "lastPlayed": self.last_played.isoformat(),
            "masteryLevel": self.mastery_level,
        }

    @classmethod
    def from_dict(cls, data: dict) -> PatternProgress:
        return cls(
            user_id=data["userId"],
            pattern_type=data["patternType"],
            current_difficulty=data.get("currentDifficulty", 1.0),
            total_attempts=data.get("totalAttempts", 0),
            successful_attempts=data.get("successfulAttempts", 0),
            average_time_to_solve=data.get("averageTimeToSolve", 0.0),
            preferred_strategies=list(data.get("preferredStrategies", [])),
            last_played=_parse_time(data.get("lastPlayed")),
            mastery_level=data.get("masteryLevel", 0.0),
        )


@dataclass
class ValidationResult:
    is_valid: bool
    confidence: float
    feedback: str
    suggestions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "isValid": self.is_valid,
            "confidence": self.confidence,
            "feedback": self.feedback,
            "suggestions": list(self.suggestions),
        }


@dataclass
class DifficultyMetrics:
    complexity: float  # 1-10
    cognitive_load: float  # 1-10
    time_to_solve: float  # seconds
    error_rate: float  # 0-1
    frustration_level: float  # 0-1

    def to_dict(self) -> dict:
        return {
            "complexity": self.complexity,
            "cognitiveLoad": self.cognitive_load,
            "timeToSolve": self.time_to_solve,
            "errorRate": self.error_rate,
            "frustrationLevel": self.frustration_level,
        }
