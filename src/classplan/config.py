"""Scheduler configuration loaded from environment variables.

All variables use the CLASSPLAN_ prefix, e.g. CLASSPLAN_DATA_FILE.
"""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class PlannerConfig(BaseSettings):
    """Scheduler configuration loaded from environment variables.

    Settings are loaded from environment variables with sensible defaults.
    For local development, create a .env file in the project root.
    """

    # Persistence
    data_file: Path = Field(
        default=Path.home() / ".config" / "plan.json",
        description="Per-user schedule file (activities + weekly grid)",
    )
    save_attempts: int = Field(
        default=3,
        ge=1,
        description="Attempts for saving the schedule before giving up",
    )

    # Meeting links
    browser: str = Field(
        default="",
        description="Browser name for meeting links (empty = system default)",
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format (for production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    @field_validator("data_file")
    @classmethod
    def _expand_home(cls, value: Path) -> Path:
        return value.expanduser()

    model_config = {
        "env_prefix": "CLASSPLAN_",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Singleton pattern
_config: PlannerConfig | None = None


def get_config() -> PlannerConfig:
    """Get the scheduler configuration singleton.

    Returns:
        PlannerConfig: Scheduler configuration instance
    """
    global _config
    if _config is None:
        _config = PlannerConfig()
    return _config


def reset_config() -> None:
    """Drop the cached configuration so the next get_config() re-reads the environment."""
    global _config
    _config = None
