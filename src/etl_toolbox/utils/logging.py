"""Structured logging for the toolbox.

Events are rendered as one JSON object per line with an ISO timestamp, the
level and the logger name. Credential-looking keys (connection strings are
common in ETL jobs) are redacted before rendering.

Settings read once at import:
- ``LOG_LEVEL`` / ``ETL_LOG_LEVEL``: log level, default INFO
- ``ETL_LOG_TO_FILE``: also write a daily rotating file
- ``ETL_LOG_FILE_DIR``: directory of that file, default ``logs``

Usage:
    >>> from etl_toolbox.utils.logging import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("mapping.completed", record_count=120, warnings=2)
"""

import logging
import re
from datetime import datetime
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Dict, MutableMapping

import structlog
from structlog.types import EventDict, Processor

from etl_toolbox.config import Settings, get_settings

SENSITIVE_PATTERNS = [
    re.compile(r".*password.*", re.IGNORECASE),
    re.compile(r".*token.*", re.IGNORECASE),
    re.compile(r".*secret.*", re.IGNORECASE),
    re.compile(r".*connection_string.*", re.IGNORECASE),
    re.compile(r"^(dsn|database_uri|database_url)$", re.IGNORECASE),
]

REDACTED_VALUE = "[REDACTED]"


def sanitize_for_logging(data: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``data`` with sensitive values replaced.

    Example:
        >>> sanitize_for_logging({"dsn": "postgresql://u:p@h/db", "table": "sales"})
        {'dsn': '[REDACTED]', 'table': 'sales'}
    """
    sanitized: Dict[str, Any] = {}
    for key, value in data.items():
        if any(pattern.match(key) for pattern in SENSITIVE_PATTERNS):
            sanitized[key] = REDACTED_VALUE
        elif isinstance(value, dict):
            sanitized[key] = sanitize_for_logging(value)
        else:
            sanitized[key] = value
    return sanitized


def sanitization_processor(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> MutableMapping[str, Any]:
    return sanitize_for_logging(dict(event_dict))


def _file_handler(settings: Settings, level: int) -> logging.Handler:
    log_dir = Path(settings.log_file_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        filename=str(log_dir / f"etl-toolbox-{datetime.now():%Y%m%d}.log"),
        when="midnight",
        backupCount=30,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def _configure_structlog(settings: Settings) -> None:
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(logging.StreamHandler())
    if settings.log_to_file:
        root.addHandler(_file_handler(settings, level))

    processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        sanitization_processor,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


_configure_structlog(get_settings())


def get_logger(name: str) -> Any:
    """A structlog ``BoundLogger`` named ``name``."""
    return structlog.get_logger(name)
