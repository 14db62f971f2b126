"""Configuration settings management for the TaskBook business layer.

This module provides centralized, hierarchical configuration using
pydantic-settings with validation and environment variable support.

Features:
- Nested BaseSettings classes for database and logging concerns
- Environment variable support with the TASKBOOK_ prefix
- Support for .env files and secrets directories
- Global settings caching
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import make_url


class DatabaseSettings(BaseSettings):
    """Database configuration for the relational store."""

    model_config = SettingsConfigDict(env_prefix="TASKBOOK_DATABASE_")

    url: str = Field(
        "sqlite:///taskbook.db", description="SQLAlchemy database connection URL"
    )
    echo_sql: bool = Field(False, description="Enable SQL query logging for debugging")
    pool_pre_ping: bool = Field(
        True, description="Test pooled connections before handing them out"
    )
    pool_timeout: int = Field(
        30, ge=1, le=300, description="Database connection timeout (seconds)"
    )
    sqlite_foreign_keys: bool = Field(
        True, description="Enforce foreign keys (and cascades) on SQLite connections"
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Ensure the URL parses and a file-backed SQLite directory exists."""
        try:
            url = make_url(v)
        except Exception as e:
            raise ValueError(f"Invalid database URL: {v}") from e

        if url.get_backend_name() == "sqlite" and url.database not in (
            None,
            "",
            ":memory:",
        ):
            Path(url.database).expanduser().resolve().parent.mkdir(
                parents=True, exist_ok=True
            )

        return v

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured store is SQLite."""
        return make_url(self.url).get_backend_name() == "sqlite"


class LoggingSettings(BaseSettings):
    """Logging configuration shared by the library and the CLI."""

    model_config = SettingsConfigDict(env_prefix="TASKBOOK_LOG_")

    level: str = Field(
        "INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    format: str = Field(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        description="Log record format",
    )
    date_format: str = Field("%Y-%m-%d %H:%M:%S", description="Timestamp format")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Normalize and check the level name."""
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level


class GroupSettings(BaseSettings):
    """Limits applied to group names at the boundary layer."""

    model_config = SettingsConfigDict(env_prefix="TASKBOOK_GROUP_")

    name_min_length: int = Field(8, ge=1, description="Minimum group name length")
    name_max_length: int = Field(100, ge=1, le=100, description="Maximum group name length")


class TaskBookSettings(BaseSettings):
    """Root configuration combining all subsystem settings."""

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    log: LoggingSettings = Field(default_factory=LoggingSettings)
    groups: GroupSettings = Field(default_factory=GroupSettings)

    debug_mode: bool = Field(False, description="Enable debug logging")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        env_prefix="TASKBOOK_",
        extra="ignore",
        validate_default=True,
        case_sensitive=False,
        secrets_dir=os.getenv("TASKBOOK_SECRETS_DIR"),
        populate_by_name=True,
    )

    @model_validator(mode="after")
    def validate_configuration(self) -> "TaskBookSettings":
        """Perform cross-field consistency checks."""
        if self.groups.name_min_length > self.groups.name_max_length:
            raise ValueError("Group name minimum length must be <= maximum length")

        if self.debug_mode:
            self.log.level = "DEBUG"

        return self

    def get_engine_options(self) -> dict[str, Any]:
        """Keyword arguments for ``sqlmodel.create_engine``."""
        options: dict[str, Any] = {
            "echo": self.database.echo_sql,
            "pool_pre_ping": self.database.pool_pre_ping,
        }
        if self.database.is_sqlite:
            options["connect_args"] = {"check_same_thread": False}
        else:
            options["pool_timeout"] = self.database.pool_timeout
        return options


@lru_cache(maxsize=1)
def get_settings() -> TaskBookSettings:
    """Get cached global settings instance.

    Returns:
        Global TaskBookSettings instance

    """
    return TaskBookSettings()


__all__ = [
    "DatabaseSettings",
    "GroupSettings",
    "LoggingSettings",
    "TaskBookSettings",
    "get_settings",
]
