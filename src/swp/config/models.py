"""Configuration models describing swp settings."""

from __future__ import annotations

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from swp.plugins.errors import ConfigurationError
from swp.plugins.utils import parse_size_string


class SwpBaseModel(BaseModel):
    """Shared configuration for swp Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class LargeFileSettings(SwpBaseModel):
    """Options for the large-file scanner.

    Attributes:
        size_threshold: Minimum size of reported files, e.g. ``"100MB"`` or ``"1.5 GB"``.
        older_than_days: Only report files last accessed more than this many days ago.
        include_git_tracked: Whether git-tracked and protected files are reported.
        enhanced_sort: Order results by risk before size.
        max_workers: Worker threads used while scanning; ``None`` uses the executor default.
        ignore: Regular expression; matching paths are dropped from results.
    """

    size_threshold: str = "100MB"
    older_than_days: Optional[int] = Field(default=None, ge=0)
    include_git_tracked: bool = False
    enhanced_sort: bool = False
    max_workers: Optional[int] = Field(default=None, ge=1)
    ignore: Optional[str] = None

    @field_validator("size_threshold", mode="before")
    @classmethod
    def _coerce_size_threshold(cls, value: object) -> object:
        # Bare numbers from YAML or the environment mean bytes.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("size_threshold")
    @classmethod
    def _validate_size_threshold(cls, value: str) -> str:
        try:
            parse_size_string(value)
        except ConfigurationError as exc:
            raise ValueError(str(exc)) from exc
        return value

    @field_validator("ignore")
    @classmethod
    def _validate_ignore(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"Invalid ignore pattern: {exc}") from exc
        return value


class LoggingSettings(SwpBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        log_file: Optional path of a rotating log file.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "WARNING"
    log_file: Optional[str] = None
    max_size_mb: int = 10
    backup_count: int = 3


class CLIOptions(SwpBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        summary_default: Whether commands only print summary lines by default.
    """

    quiet_default: bool = False
    summary_default: bool = False


class SwpConfig(SwpBaseModel):
    """Top-level configuration for swp.

    Attributes:
        large_files: Large-file scanner settings.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    large_files: LargeFileSettings = Field(default_factory=LargeFileSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "SwpBaseModel",
    "LargeFileSettings",
    "LoggingSettings",
    "CLIOptions",
    "SwpConfig",
]
