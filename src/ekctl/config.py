"""Runtime settings for ekctl.

Settings are read from ``EKCTL_*`` environment variables through
pydantic-settings, so tests and wrappers can relocate the alias
registry without touching the user's home directory.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from ekctl.exceptions import ValidationError

REGISTRY_FILE_NAME: str = "config.json"


def default_config_dir() -> Path:
    """``~/.ekctl`` — the per-user home of the alias registry."""
    return Path.home() / ".ekctl"


class Settings(BaseSettings):
    """Central configuration contract for the CLI and infra adapters."""

    model_config = SettingsConfigDict(
        env_prefix="EKCTL_",
        extra="ignore",
        case_sensitive=False,
    )

    config_dir: Path = Field(
        default_factory=default_config_dir,
        description="Directory holding the alias registry (config.json).",
    )
    access_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="How long to wait for the Calendar/Reminders permission answer.",
    )
    log_level: str = Field(
        default="WARNING",
        description="Logging level for the ekctl logger (stderr only).",
    )

    @field_validator("config_dir")
    @classmethod
    def _expand_config_dir(cls, value: Path) -> Path:
        return value.expanduser()

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if not isinstance(logging.getLevelName(normalized), int):
            raise ValueError(f"unknown log level: {value!r}")
        return normalized

    @property
    def registry_path(self) -> Path:
        return self.config_dir / REGISTRY_FILE_NAME


def load_settings() -> Settings:
    """Build a fresh :class:`Settings` from the current environment.

    Raises
    ------
    ValidationError
        If an ``EKCTL_*`` variable holds an unusable value.
    """
    try:
        return Settings()
    except PydanticValidationError as exc:
        problems = "; ".join(
            f"EKCTL_{'_'.join(str(part) for part in err['loc']).upper()}: {err['msg']}"
            for err in exc.errors()
        )
        raise ValidationError(f"Invalid configuration: {problems}") from exc
