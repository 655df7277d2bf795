"""
Coaching gate thresholds, named levels and cultural presets.

The defaults encode the silence-first rules: 85% minimum confidence,
2 minutes between prompts, 5 seconds of quiet after speech and at most 3
prompts per session. Named levels trade prompt frequency against
interruption risk. Cultural presets stretch or shrink the cooldowns to
match conversational pacing norms, and the sensitivity multiplier scales
the confidence threshold and session cooldown together.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, field_validator

from interview_coach.errors import ConfigError

logger = logging.getLogger(__name__)

# Silence tolerance that the base speech cooldown is calibrated against.
BASE_SILENCE_TOLERANCE = 5.0


class CoachingLevel(str, Enum):
    """Named threshold presets."""
    DEFAULT = "default"
    OFF = "off"
    MINIMAL = "minimal"
    BALANCED = "balanced"
    ACTIVE = "active"


class CulturalPreset(str, Enum):
    """Conversational pacing presets."""
    WESTERN = "western"
    EAST_ASIAN = "east_asian"
    LATIN_AMERICAN = "latin_american"
    MIDDLE_EASTERN = "middle_eastern"

    @property
    def silence_tolerance_seconds(self) -> float:
        """Comfortable pause length before a silence feels awkward."""
        return _CULTURAL_PACING[self][0]

    @property
    def pacing_multiplier(self) -> float:
        """Multiplier applied to the session cooldown."""
        return _CULTURAL_PACING[self][1]


_CULTURAL_PACING = {
    CulturalPreset.WESTERN: (5.0, 1.0),
    CulturalPreset.EAST_ASIAN: (12.0, 1.5),
    CulturalPreset.LATIN_AMERICAN: (4.0, 0.8),
    CulturalPreset.MIDDLE_EASTERN: (8.0, 1.3),
}


class CoachingThresholds(BaseModel):
    """
    Gate thresholds for one session.

    Values are clamped rather than rejected: confidence into [0, 1],
    cooldowns and prompt cap to be non-negative, sensitivity into
    [0.1, 3.0].

    Example:
        >>> t = CoachingThresholds.for_level(CoachingLevel.ACTIVE)
        >>> round(t.effective_confidence_threshold, 3)
        0.5
    """
    minimum_confidence: float = 0.85
    session_cooldown_seconds: float = 120.0
    speech_cooldown_seconds: float = 5.0
    max_prompts_per_session: int = 3
    sensitivity_multiplier: float = 1.0

    class Config:
        """Pydantic configuration."""
        from_attributes = True
        frozen = True

    @field_validator("minimum_confidence")
    @classmethod
    def clamp_confidence(cls, v: float) -> float:
        """Clamp into [0, 1]."""
        return max(0.0, min(1.0, v))

    @field_validator("session_cooldown_seconds", "speech_cooldown_seconds")
    @classmethod
    def clamp_cooldown(cls, v: float) -> float:
        """Cooldowns cannot be negative."""
        return max(0.0, v)

    @field_validator("max_prompts_per_session")
    @classmethod
    def clamp_max_prompts(cls, v: int) -> int:
        """Prompt cap cannot be negative."""
        return max(0, v)

    @field_validator("sensitivity_multiplier")
    @classmethod
    def clamp_sensitivity(cls, v: float) -> float:
        """Clamp into [0.1, 3.0]."""
        return max(0.1, min(3.0, v))

    @property
    def effective_confidence_threshold(self) -> float:
        """Confidence gate after sensitivity, clamped into [0.5, 1.0]."""
        return max(0.5, min(1.0, self.minimum_confidence / self.sensitivity_multiplier))

    @property
    def effective_session_cooldown(self) -> float:
        """Session cooldown after sensitivity."""
        return self.session_cooldown_seconds / self.sensitivity_multiplier

    @classmethod
    def for_level(cls, level: CoachingLevel) -> "CoachingThresholds":
        """Thresholds for a named level."""
        return cls(**LEVEL_PRESETS[CoachingLevel(level)])

    def with_cultural_context(self, preset: CulturalPreset) -> "CoachingThresholds":
        """
        Adjust cooldowns for a cultural pacing preset.

        The speech cooldown scales with silence tolerance relative to the
        5 second baseline; the session cooldown scales with the pacing
        multiplier.

        Args:
            preset: Cultural preset to apply

        Returns:
            New thresholds (this instance is unchanged)
        """
        preset = CulturalPreset(preset)
        return self.model_copy(update={
            "speech_cooldown_seconds": self.speech_cooldown_seconds
            * preset.silence_tolerance_seconds / BASE_SILENCE_TOLERANCE,
            "session_cooldown_seconds": self.session_cooldown_seconds * preset.pacing_multiplier,
        })

    @classmethod
    def from_config(cls, config: Any) -> "CoachingThresholds":
        """
        Build thresholds from a ``CoachConfig``.

        The ``default`` level takes the individual threshold fields from
        the config, sensitivity included; any other level uses its preset
        values. The cultural preset is applied on top in both cases.

        Args:
            config: CoachConfig (or any object with the same attributes)

        Returns:
            CoachingThresholds

        Raises:
            ConfigError: If the level or cultural preset is unknown
        """
        try:
            level = CoachingLevel(str(config.coaching_level).strip().lower())
            preset = CulturalPreset(str(config.cultural_preset).strip().lower())
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc

        if level == CoachingLevel.DEFAULT:
            values: Dict[str, Any] = {
                "minimum_confidence": config.minimum_confidence,
                "session_cooldown_seconds": config.session_cooldown_seconds,
                "speech_cooldown_seconds": config.speech_cooldown_seconds,
                "max_prompts_per_session": config.max_prompts_per_session,
                "sensitivity_multiplier": config.sensitivity_multiplier,
            }
        else:
            values = dict(LEVEL_PRESETS[level])

        thresholds = cls(**values)
        if preset != CulturalPreset.WESTERN:
            thresholds = thresholds.with_cultural_context(preset)
        logger.debug("Coaching thresholds (%s, %s): %s", level.value, preset.value, thresholds)
        return thresholds


LEVEL_PRESETS: Dict[CoachingLevel, Dict[str, Any]] = {
    CoachingLevel.DEFAULT: {},
    CoachingLevel.OFF: {"max_prompts_per_session": 0},
    CoachingLevel.MINIMAL: {
        "minimum_confidence": 0.95,
        "session_cooldown_seconds": 180.0,
        "speech_cooldown_seconds": 8.0,
        "max_prompts_per_session": 2,
        "sensitivity_multiplier": 0.5,
    },
    CoachingLevel.BALANCED: {
        "minimum_confidence": 0.80,
        "session_cooldown_seconds": 90.0,
        "speech_cooldown_seconds": 4.0,
        "max_prompts_per_session": 4,
    },
    CoachingLevel.ACTIVE: {
        "minimum_confidence": 0.70,
        "session_cooldown_seconds": 60.0,
        "speech_cooldown_seconds": 3.0,
        "max_prompts_per_session": 6,
        "sensitivity_multiplier": 1.5,
    },
}


def default_thresholds(level: Optional[CoachingLevel] = None) -> CoachingThresholds:
    """Thresholds for ``level``, or the silence-first defaults."""
    return CoachingThresholds.for_level(level or CoachingLevel.DEFAULT)


__all__ = [
    "BASE_SILENCE_TOLERANCE",
    "CoachingLevel",
    "CulturalPreset",
    "CoachingThresholds",
    "LEVEL_PRESETS",
    "default_thresholds",
]
