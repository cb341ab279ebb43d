"""Pattern type registry and construction."""

from __future__ import annotations

import logging
import random
from enum import Enum
from typing import Optional, Union

from patternprophet.engine.base_pattern import PatternEngine
from patternprophet.engine.elements import (
    AccessibilityFeatures,
    PatternConfig,
    PatternProgress,
)
from patternprophet.engine.visual_sequence import VisualSequencePattern

logger = logging.getLogger(__name__)


class PatternType(str, Enum):
    VISUAL_SEQUENCE = "visual-sequence"
    NUMBER = "number"
    MUSICAL = "musical"
    SPATIAL = "spatial"
    RULE_BASED = "rule-based"

    @classmethod
    def parse(cls, value: Union[str, "PatternType"]) -> "PatternType":
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown pattern type: {value}") from None


class UnsupportedPatternType(ValueError):
    """The pattern type is declared but has no implementation yet."""

    def __init__(self, pattern_type: PatternType):
        self.pattern_type = pattern_type
        super().__init__(f"Pattern type '{pattern_type.value}' is not yet implemented")


class PatternFactory:
    """Maps pattern types to engine classes."""

    _registry: dict[PatternType, type[PatternEngine]] = {
        PatternType.VISUAL_SEQUENCE: VisualSequencePattern,
    }

    @classmethod
    def register(cls, pattern_type: Union[str, PatternType], engine_cls: type[PatternEngine]) -> None:
        cls._registry[PatternType.parse(pattern_type)] = engine_cls

    @classmethod
    def available_types(cls) -> list[PatternType]:
        return [t for t in PatternType if t in cls._registry]

    @classmethod
    def is_implemented(cls, pattern_type: Union[str, PatternType]) -> bool:
        return PatternType.parse(pattern_type) in cls._registry

    @classmethod
    def create_pattern(
        cls,
        pattern_type: Union[str, PatternType],
        config: PatternConfig,
        progress: PatternProgress,
        rng: Optional[random.Random] = None,
        **options,
    ) -> PatternEngine:
        """Construct the engine for ``pattern_type``.

        Extra keyword options are passed to the engine constructor, e.g.
        ``degenerate_match_override`` for visual sequences.
        """
        ptype = PatternType.parse(pattern_type)
        engine_cls = cls._registry.get(ptype)
        if engine_cls is None:
            logger.warning("Requested unsupported pattern type %s", ptype.value)
            raise UnsupportedPatternType(ptype)
        return engine_cls(config, progress, rng=rng, **options)

    @staticmethod
    def get_default_config(
        pattern_type: Union[str, PatternType], difficulty: float = 3
    ) -> PatternConfig:
        """Empty seed config to hand to ``create_pattern`` before the first generate."""
        return PatternConfig(
            pattern_type=PatternType.parse(pattern_type).value,
            difficulty=difficulty,
            accessibility=AccessibilityFeatures(),
        )

    @staticmethod
    def get_default_progress(
        user_id: str, pattern_type: Union[str, PatternType]
    ) -> PatternProgress:
        return PatternProgress(
            user_id=user_id,
            pattern_type=PatternType.parse(pattern_type).value,
            current_difficulty=1.0,
        )
