"""
Configuration management for the ETL toolbox.

This module provides environment-based configuration using Pydantic BaseSettings,
so batch jobs can tune row-failure policy, default sheet/table identifiers and
circuit breaker thresholds per deployment without code changes.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Determine project root for resolving .env by default
PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_ENV_FILE = PROJECT_ROOT / ".env"
ENV_FILE_OVERRIDE = os.getenv("ETL_ENV_FILE")
if ENV_FILE_OVERRIDE:
    env_file_candidate = Path(ENV_FILE_OVERRIDE).expanduser()
    if not env_file_candidate.is_absolute():
        env_file_candidate = PROJECT_ROOT / env_file_candidate
    SETTINGS_ENV_FILE = env_file_candidate
else:
    SETTINGS_ENV_FILE = DEFAULT_ENV_FILE


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Environment variables are automatically loaded with the ETL_ prefix.
    For example, ETL_SKIP_BAD_ROWS=false makes every mapper abort on the first
    bad row instead of collecting warnings.

    Breaker thresholds are validated when a breaker is built from these
    settings, not here, so a misordered set of values surfaces as a
    ConfigurationError at the point of use.
    """

    LOG_LEVEL: str = Field(
        default="INFO",
        validation_alias=AliasChoices("LOG_LEVEL", "ETL_LOG_LEVEL"),
        description="Logging level (uppercase)",
    )
    log_to_file: bool = Field(
        default=False, description="Also log to a daily rotating file"
    )
    log_file_dir: str = Field(default="logs", description="Directory of log files")

    debug: bool = Field(
        default=False,
        description="Debug mode: I/O runs once through a pass-through breaker",
    )

    # Mapping behaviour
    skip_bad_rows: bool = Field(
        default=True,
        description="Collect row-level errors as warnings instead of aborting",
    )
    default_sheet_name: str = Field(
        default="Sheet1", description="Sheet read when none is given"
    )
    default_table_name: str = Field(
        default="table1", description="Table name used for in-memory data sets"
    )
    bulk_timeout_seconds: int = Field(
        default=6000, description="Timeout for a single bulk insert, in seconds"
    )

    # Circuit breaker
    breaker_warning_threshold: int = Field(
        default=3,
        description="Consecutive failures before OPENED -> HALF_OPENED",
    )
    breaker_close_threshold: int = Field(
        default=6,
        description="Consecutive failures before HALF_OPENED -> CLOSED",
    )
    breaker_failure_threshold: int = Field(
        default=10,
        description="Consecutive failures in CLOSED before giving up",
    )
    breaker_opened_wait_ms: int = Field(
        default=0, description="Wait between attempts in OPENED state (ms)"
    )
    breaker_half_opened_wait_ms: int = Field(
        default=5000, description="Wait between attempts in HALF_OPENED state (ms)"
    )
    breaker_closed_wait_ms: int = Field(
        default=300000, description="Wait between attempts in CLOSED state (ms)"
    )

    # Database
    database_uri: Optional[str] = Field(
        default=None,
        description="SQLAlchemy URL for the relational source/sink",
        validation_alias=AliasChoices("ETL_DATABASE__URI", "ETL_DATABASE_URI"),
    )
    database_schema: Optional[str] = Field(
        default=None, description="Database schema holding source/target tables"
    )

    def get_database_connection_string(self) -> Optional[str]:
        """Return the configured database URL.

        Automatically corrects 'postgres://' scheme to 'postgresql://' for
        SQLAlchemy compatibility.
        """
        uri = self.database_uri
        if uri and uri.startswith("postgres://"):
            uri = uri.replace("postgres://", "postgresql://", 1)
        return uri

    model_config = SettingsConfigDict(
        env_prefix="ETL_",
        env_file=str(SETTINGS_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance with loaded configuration
    """
    return Settings()
