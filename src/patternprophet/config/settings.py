"""Configuration model for Pattern Prophet."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from patternprophet.engine.elements import AccessibilityFeatures


class GeneratorConfig(BaseModel):
    default_difficulty: float = Field(default=3, ge=1, le=10)
    seed: Optional[int] = None
    # Score non-empty attempts that match nothing as 0.9 (legacy behaviour)
    degenerate_match_override: bool = True
    detect_strategies: bool = False
    adaptation_window: int = Field(default=5, ge=1)

    def get_seed(self) -> Optional[int]:
        env = os.environ.get("PATTERNPROPHET_SEED")
        return int(env) if env else self.seed

    def engine_options(self) -> dict:
        return {
            "degenerate_match_override": self.degenerate_match_override,
            "detect_strategies": self.detect_strategies,
        }


class AccessibilityConfig(BaseModel):
    high_contrast: bool = True
    reduced_motion: bool = True
    audio_descriptions: bool = True
    keyboard_navigation: bool = True

    def to_features(self) -> AccessibilityFeatures:
        return AccessibilityFeatures(**self.model_dump())


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file: Optional[Path] = None

    def get_level(self) -> str:
        return (os.environ.get("PATTERNPROPHET_LOG_LEVEL") or self.level).upper()


class Settings(BaseModel):
    generator: GeneratorConfig = Field(default_factory=GeneratorConfig)
    accessibility: AccessibilityConfig = Field(default_factory=AccessibilityConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    data_dir: Path = Path.home() / ".patternprophet"

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        config_path = config_path or (Path.home() / ".patternprophet" / "config.yaml")
        if config_path.exists():
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
            return cls(**data)
        return cls()

    def save(self) -> Path:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        config_path = self.data_dir / "config.yaml"
        with open(config_path, "w") as f:
            yaml.dump(self.model_dump(mode="json"), f, default_flow_style=False)
        return config_path
