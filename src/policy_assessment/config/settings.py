"""Application settings.

This module provides configuration settings for the application, loaded from
a YAML configuration file and ``POLICY_ASSESSMENT_*`` environment variables.
Values from the file take precedence; environment variables fill the rest.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Union

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from policy_assessment.utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class LogLevel(str, Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class DispatcherBackend(str, Enum):
    """Worker backend used by the dispatcher."""

    THREAD = "thread"
    PROCESS = "process"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="POLICY_ASSESSMENT_",
        case_sensitive=False,
        extra="ignore",
        use_enum_values=True,
    )

    # General settings
    app_name: str = "Policy Assessment"
    debug: bool = Field(default=False)
    log_level: LogLevel = Field(default=LogLevel.INFO)
    log_file: Optional[Path] = None
    log_max_file_size: str = Field(default="10MB")
    log_backup_count: int = Field(default=5, ge=0)

    # Dispatch settings
    max_workers: int = Field(default=10, ge=1)
    dispatcher_backend: DispatcherBackend = Field(default=DispatcherBackend.THREAD)
    dispatch_timeout: Optional[float] = Field(default=None, gt=0)  # Seconds
    reporting_window_hours: float = Field(default=24.0, gt=0)

    # Storage settings
    storage_type: str = Field(default="sqlite")  # "sqlite" or "postgresql"
    sqlite_path: Optional[Path] = None

    # PostgreSQL settings (only used if storage_type is "postgresql")
    pg_host: str = Field(default="localhost")
    pg_port: int = Field(default=5432)
    pg_user: str = Field(default="postgres")
    pg_password: str = Field(default="")
    pg_database: str = Field(default="policy_assessment")

    # Report settings
    report_dir: Optional[Path] = None
    report_format: str = Field(default="json")  # "json", "csv", "html"

    @field_validator("log_file", "sqlite_path", "report_dir", mode="before")
    @classmethod
    def validate_path(cls, v: Any) -> Optional[Path]:
        """Expand user paths and make them absolute."""
        if v is None or v == "":
            return None

        if isinstance(v, (str, Path)):
            return Path(v).expanduser().absolute()

        raise ValueError(f"Invalid path: {v}")


def default_config_paths() -> List[Path]:
    """Configuration files searched, in order, when no path is given."""
    return [
        Path.cwd() / "policy_assessment.yaml",
        Path.cwd() / "policy_assessment.yml",
        Path.home() / ".policy_assessment" / "config.yaml",
        Path.home() / ".policy_assessment" / "config.yml",
        Path("/etc/policy_assessment/config.yaml"),
    ]


def load_settings(config_path: Optional[Union[str, Path]] = None) -> Settings:
    """Load settings from a configuration file and environment variables.

    Args:
        config_path: Path to a YAML configuration file, or None to search the
            default locations

    Returns:
        Loaded settings

    Raises:
        ConfigurationError: If the given file is missing or any file found is
            malformed
    """
    if config_path:
        config_paths = [Path(config_path)]
        if not config_paths[0].is_file():
            raise ConfigurationError(f"Configuration file not found: {config_path}")
    else:
        config_paths = default_config_paths()

    config_data: dict = {}
    for path in config_paths:
        if path.exists() and path.is_file():
            try:
                with path.open("r") as f:
                    config_data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Error loading configuration from {path}: {e}") from e
            if not isinstance(config_data, dict):
                raise ConfigurationError(f"Configuration in {path} must be a mapping")
            break

    try:
        return Settings(**config_data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def _load_global_settings() -> Settings:
    """Settings for module-level use; a broken configuration falls back to defaults.

    Commands that need the configuration call :func:`load_settings` themselves
    and report the error there.
    """
    try:
        return load_settings()
    except ConfigurationError as e:
        logger.warning(f"{e}; using default settings")
        return Settings.model_construct()


settings = _load_global_settings()


def reload_settings(config_path: Optional[Union[str, Path]] = None) -> Settings:
    """Reload the global settings.

    Args:
        config_path: Path to a YAML configuration file, or None to search the
            default locations

    Returns:
        Reloaded settings
    """
    global settings
    settings = load_settings(config_path)
    return settings
