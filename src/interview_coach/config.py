"""
Configuration management for the Interview Coach core.

Provides centralized configuration using Pydantic for validation and
environment variable support. Supports coach.yaml for per-study coaching
settings such as threshold presets and overrides.
"""

from pathlib import Path
from typing import Optional, Tuple, Type

import yaml
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from interview_coach.errors import ConfigError


# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent.parent

ENV_PREFIX = "INTERVIEW_COACH_"
CONFIG_FILENAME = "coach.yaml"


def load_coach_yaml(search_dir: Optional[Path] = None) -> dict:
    """
    Load coach.yaml configuration file.

    Searches for coach.yaml starting from search_dir (or PROJECT_ROOT)
    and walking up to 3 parent directories.

    Args:
        search_dir: Directory to start searching from

    Returns:
        Dictionary with coach.yaml contents, or empty dict if not found

    Raises:
        ConfigError: If a coach.yaml exists but is not valid YAML
    """
    start = Path(search_dir) if search_dir else PROJECT_ROOT
    for parent in [start] + list(start.parents)[:3]:
        candidate = parent / CONFIG_FILENAME
        if candidate.exists():
            try:
                with open(candidate, "r", encoding="utf-8") as f:
                    return yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigError(f"Could not parse {candidate}: {exc}") from exc
    return {}


class CoachConfig(BaseSettings):
    """
    Coaching core configuration with environment variable support.

    Configuration can be provided via:
    1. Environment variables (prefixed with INTERVIEW_COACH_)
    2. .env file
    3. coach.yaml (``coaching`` section)
    4. Default values

    Keyword arguments rank below both environment sources; this is how
    get_config() layers coach.yaml under the environment and .env.

    The defaults follow the silence-first rules: coaching is off for a
    first-ever session, at most 3 prompts, 2 minutes between prompts,
    5 seconds of quiet after speech and 85% minimum confidence.

    Example:
        export INTERVIEW_COACH_MAX_PROMPTS_PER_SESSION=2
        export INTERVIEW_COACH_CULTURAL_PRESET=east_asian
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """Order sources: environment, .env, keyword arguments, secrets."""
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    # Coaching gates
    coaching_level: str = Field(
        default="default",
        description="Threshold preset (default/off/minimal/balanced/active)"
    )
    first_session_coaching_enabled: bool = Field(
        default=False,
        description="Whether coaching starts enabled for a researcher's first session"
    )
    minimum_confidence: float = Field(
        default=0.85, ge=0.0, le=1.0,
        description="Minimum candidate confidence before a prompt may be shown"
    )
    session_cooldown_seconds: float = Field(
        default=120.0, ge=0.0,
        description="Minimum seconds between two shown prompts"
    )
    speech_cooldown_seconds: float = Field(
        default=5.0, ge=0.0,
        description="Seconds of quiet required after speech ends"
    )
    max_prompts_per_session: int = Field(
        default=3, ge=0,
        description="Hard cap on prompts shown in a session"
    )
    sensitivity_multiplier: float = Field(
        default=1.0, ge=0.1, le=3.0,
        description="Scales confidence threshold and cooldown (higher = more prompts)"
    )
    cultural_preset: str = Field(
        default="western",
        description="Cultural pacing preset (western/east_asian/latin_american/middle_eastern)"
    )

    # Stream handling
    jitter_window_seconds: float = Field(
        default=2.0, ge=0.0,
        description="Reorder buffer width for out-of-order utterances"
    )
    analysis_workers: int = Field(
        default=4, ge=1,
        description="Thread pool size for batch utterance analysis"
    )

    # Insight flagging
    insight_max_flags: int = Field(
        default=5, ge=5, le=7,
        description="Per-session cap on auto-flagged insights"
    )
    insight_intensity_threshold: float = Field(
        default=0.7, ge=0.0, le=1.0,
        description="Sentiment intensity required to auto-flag an utterance"
    )

    # Talk time
    talk_time_window_seconds: float = Field(
        default=300.0, gt=0.0,
        description="Rolling talk-time window width"
    )
    talk_time_step_seconds: float = Field(
        default=30.0, gt=0.0,
        description="Rolling talk-time window step"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level for the CLI"
    )


def get_config(search_dir: Optional[Path] = None) -> CoachConfig:
    """
    Get the coaching configuration instance.

    Merges settings from environment variables, .env file,
    and the ``coaching`` section of coach.yaml (if present). Environment
    variables and .env entries both win over coach.yaml values.

    Args:
        search_dir: Directory to start the coach.yaml search from

    Returns:
        CoachConfig: Coaching configuration

    Raises:
        ConfigError: If coach.yaml is malformed or holds invalid values
    """
    yaml_config = load_coach_yaml(search_dir)
    if not isinstance(yaml_config, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping")
    section = yaml_config.get("coaching") or {}
    if not isinstance(section, dict):
        raise ConfigError(f"'coaching' in {CONFIG_FILENAME} must be a mapping")

    try:
        return CoachConfig(**{str(k): v for k, v in section.items()})
    except ValidationError as exc:
        raise ConfigError(f"Invalid coaching settings in {CONFIG_FILENAME}: {exc}") from exc


__all__ = [
    "ENV_PREFIX",
    "CONFIG_FILENAME",
    "CoachConfig",
    "load_coach_yaml",
    "get_config",
    "PROJECT_ROOT",
]
