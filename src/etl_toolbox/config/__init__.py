"""Configuration management for the ETL toolbox.

Settings are loaded from environment variables (``ETL_`` prefix) and an
optional ``.env`` file, validated with Pydantic BaseSettings.

Usage:
    >>> from etl_toolbox.config import get_settings
    >>> settings = get_settings()
    >>> settings.skip_bad_rows
    True
"""

from etl_toolbox.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
