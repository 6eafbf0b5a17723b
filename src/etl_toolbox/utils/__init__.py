"""Shared utilities."""

from .logging import get_logger, sanitize_for_logging

__all__ = [
    "get_logger",
    "sanitize_for_logging",
]
