"""
Resilience wrapper for I/O-bound ETL steps.

Reading schemas and rows, and bulk writing, all run through a breaker so that
transient connectivity problems are retried with escalating waits.
"""

from .breaker import (
    NON_RETRYABLE_ERRORS,
    BreakerState,
    CircuitBreaker,
    DebugCircuitBreaker,
    create_breaker,
)

__all__ = [
    "NON_RETRYABLE_ERRORS",
    "BreakerState",
    "CircuitBreaker",
    "DebugCircuitBreaker",
    "create_breaker",
]
