"""Configuration management for Worktrail MCP."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Annotated
import os

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

ACTIVITY_LOG_NAME = "activity.log"


class WorktrailSettings(BaseSettings):
    """Runtime configuration sourced from environment variables and optional .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    workspace_path: Path = Field(default=Path("."), validation_alias="WORKTRAIL_WORKSPACE")
    data_dir: Path = Field(default=Path(".vscode/devBoost"), validation_alias="WORKTRAIL_DATA_DIR")
    max_log_bytes: int = Field(default=5 * 1024 * 1024, validation_alias="WORKTRAIL_MAX_LOG_BYTES")
    max_log_entries: int = Field(default=500, validation_alias="WORKTRAIL_MAX_LOG_ENTRIES")
    max_backups: int = Field(default=3, validation_alias="WORKTRAIL_MAX_BACKUPS")
    rotation_interval_hours: float = Field(
        default=24.0, validation_alias="WORKTRAIL_ROTATION_INTERVAL_HOURS"
    )
    sequence_gap_ms: int = Field(default=120_000, validation_alias="WORKTRAIL_SEQUENCE_GAP_MS")
    max_sequence_length: int = Field(default=5, validation_alias="WORKTRAIL_MAX_SEQUENCE_LENGTH")
    top_activities: int = Field(default=10, validation_alias="WORKTRAIL_TOP_ACTIVITIES")
    pattern_paths: Annotated[tuple[Path, ...], NoDecode] = Field(
        default=(Path("patterns"),), validation_alias="WORKTRAIL_PATTERN_PATHS"
    )
    log_level: str = Field(default="INFO", validation_alias="WORKTRAIL_LOG_LEVEL")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(
                "WORKTRAIL_LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG"
            )
        return normalized

    @field_validator("pattern_paths", mode="before")
    @classmethod
    def _parse_pattern_paths(cls, value):
        if value is None or value == "":
            return (Path("patterns"),)
        if isinstance(value, (list, tuple)):
            return tuple(Path(str(item)) for item in value)
        if isinstance(value, str):
            parts = [part.strip() for part in value.split(os.pathsep) if part.strip()]
            return tuple(Path(part) for part in parts) or (Path("patterns"),)
        raise TypeError("WORKTRAIL_PATTERN_PATHS must be a list of paths or a path-separated string")

    @field_validator(
        "max_log_bytes",
        "max_log_entries",
        "max_backups",
        "sequence_gap_ms",
        "max_sequence_length",
        "top_activities",
    )
    @classmethod
    def _validate_positive(cls, value: int, info) -> int:
        if value < 1:
            raise ValueError(f"{info.field_name} must be >= 1")
        return value

    @field_validator("rotation_interval_hours")
    @classmethod
    def _validate_interval(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("WORKTRAIL_ROTATION_INTERVAL_HOURS must be > 0")
        return value

    @property
    def activity_log_path(self) -> Path:
        """Location of the workspace-scoped activity log."""

        return self.workspace_path / self.data_dir / ACTIVITY_LOG_NAME

    @property
    def recent_window(self) -> int:
        return max(1, self.max_log_entries // 2)


@lru_cache(maxsize=1)
def get_settings() -> WorktrailSettings:
    """Return cached settings instance."""

    settings = WorktrailSettings()
    settings.workspace_path = settings.workspace_path.expanduser().resolve()
    settings.pattern_paths = tuple(path.expanduser().resolve() for path in settings.pattern_paths)
    return settings


__all__ = ["ACTIVITY_LOG_NAME", "WorktrailSettings", "get_settings"]
