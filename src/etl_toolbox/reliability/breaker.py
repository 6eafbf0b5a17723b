"""Retry/backoff circuit breaker guarding I/O-bound ETL steps.

Every call that touches a source or sink runs through ``execute``. The action
is retried inside the same call until it succeeds or the failure budget of the
degraded state runs out.

States (the names are inverted relative to the usual breaker vocabulary, and
the behaviour, not the label, is the contract):
    OPENED: healthy. No wait between attempts.
    HALF_OPENED: degraded. Medium wait between attempts.
    CLOSED: badly degraded. Long wait; a terminal failure is raised once
        ``failure_threshold`` consecutive errors accumulate.

Example:
    >>> breaker = CircuitBreaker(warning_threshold=2, close_threshold=4,
    ...                          failure_threshold=6, opened_wait_ms=0,
    ...                          half_opened_wait_ms=10, closed_wait_ms=100)
    >>> breaker.execute(lambda: 42)
    42
"""

import threading
import time
from enum import Enum
from typing import Callable, Optional, TypeVar

from etl_toolbox.exceptions import (
    ConfigurationError,
    TransientFailure,
    ValidationError,
)
from etl_toolbox.utils.logging import get_logger

T = TypeVar("T")

logger = get_logger(__name__)

# Raised by the action itself to signal a usage fault; never retried
NON_RETRYABLE_ERRORS = (ValidationError, ConfigurationError)


class BreakerState(str, Enum):
    """Circuit breaker states."""

    OPENED = "opened"
    HALF_OPENED = "half_opened"
    CLOSED = "closed"


class CircuitBreaker:
    """Stateful retry guard with three escalating wait levels.

    Attributes:
        name: Identifier used in log events
        warning_threshold: Failures before OPENED -> HALF_OPENED; also the
            number of successes in HALF_OPENED that fully resets the breaker
        close_threshold: Failures before HALF_OPENED -> CLOSED
        failure_threshold: Failures in CLOSED that produce a terminal error
    """

    def __init__(
        self,
        warning_threshold: int = 3,
        close_threshold: int = 6,
        failure_threshold: int = 10,
        opened_wait_ms: int = 0,
        half_opened_wait_ms: int = 5000,
        closed_wait_ms: int = 300000,
        sleep: Callable[[float], None] = time.sleep,
        name: str = "default",
    ):
        if warning_threshold <= 0:
            raise ConfigurationError("Warning threshold must be greater than zero")
        if close_threshold <= warning_threshold:
            raise ConfigurationError(
                "Close threshold must be greater than warning threshold"
            )
        if failure_threshold <= close_threshold:
            raise ConfigurationError(
                "Failure threshold must be greater than close threshold"
            )
        if opened_wait_ms < 0:
            raise ConfigurationError("Opened wait interval can not be negative")
        if half_opened_wait_ms <= opened_wait_ms:
            raise ConfigurationError(
                "Half-opened wait interval must be greater than opened wait interval"
            )
        if closed_wait_ms <= half_opened_wait_ms:
            raise ConfigurationError(
                "Closed wait interval must be greater than half-opened wait interval"
            )

        self.name = name
        self.warning_threshold = warning_threshold
        self.close_threshold = close_threshold
        self.failure_threshold = failure_threshold
        self._waits_ms = {
            BreakerState.OPENED: opened_wait_ms,
            BreakerState.HALF_OPENED: half_opened_wait_ms,
            BreakerState.CLOSED: closed_wait_ms,
        }
        self._sleep = sleep
        self._lock = threading.Lock()

        self._state = BreakerState.OPENED
        self._success_count = 0
        self._failure_count = 0
        self._wait_ms = opened_wait_ms

    @property
    def state(self) -> BreakerState:
        return self._state

    @property
    def success_count(self) -> int:
        return self._success_count

    @property
    def failure_count(self) -> int:
        return self._failure_count

    @property
    def wait_ms(self) -> int:
        """Wait applied before the next attempt."""
        return self._wait_ms

    def reset(self) -> None:
        """Return to OPENED with both counters cleared."""
        with self._lock:
            self._reset()

    def execute(self, action: Callable[[], T]) -> T:
        """Run ``action`` until it succeeds or the breaker gives up.

        Raises:
            ValidationError, ConfigurationError: re-raised immediately when the
                action raises them, without touching breaker state
            TransientFailure: when the failure threshold is reached in CLOSED
        """
        while True:
            if self._wait_ms > 0:
                self._sleep(self._wait_ms / 1000)

            try:
                result = action()
            except NON_RETRYABLE_ERRORS:
                raise
            except Exception as exc:
                with self._lock:
                    terminal = self._on_failure(exc)
                    self._wait_ms = self._waits_ms[self._state]
                if terminal:
                    logger.error(
                        "breaker.tripped",
                        breaker=self.name,
                        failure_threshold=self.failure_threshold,
                        error=str(exc),
                    )
                    raise TransientFailure(
                        f"Circuit breaker '{self.name}' gave up after "
                        f"{self.failure_threshold} consecutive failures: {exc}",
                        original_error=exc,
                    ) from exc
                continue

            with self._lock:
                self._on_success()
                self._wait_ms = self._waits_ms[self._state]
            return result

    def _reset(self) -> None:
        self._state = BreakerState.OPENED
        self._success_count = 0
        self._failure_count = 0

    def _transition_to(self, new_state: BreakerState) -> None:
        logger.warning(
            "breaker.state_changed",
            breaker=self.name,
            old_state=self._state.value,
            new_state=new_state.value,
            failure_count=self._failure_count,
        )
        self._state = new_state

    def _on_success(self) -> None:
        self._success_count += 1
        self._failure_count = 0

        if self._state == BreakerState.HALF_OPENED:
            if self._success_count >= self.warning_threshold:
                self._transition_to(BreakerState.OPENED)
                self._reset()
        elif self._state == BreakerState.CLOSED:
            self._transition_to(BreakerState.HALF_OPENED)

    def _on_failure(self, exc: Exception) -> bool:
        """Apply a failure; return True when the error is terminal."""
        self._failure_count += 1
        self._success_count = 0

        logger.debug(
            "breaker.attempt_failed",
            breaker=self.name,
            state=self._state.value,
            failure_count=self._failure_count,
            error_type=type(exc).__name__,
        )

        if self._state == BreakerState.OPENED:
            if self._failure_count >= self.warning_threshold:
                self._transition_to(BreakerState.HALF_OPENED)
        elif self._state == BreakerState.HALF_OPENED:
            if self._failure_count >= self.close_threshold:
                self._transition_to(BreakerState.CLOSED)
        elif self._failure_count >= self.failure_threshold:
            self._failure_count = self.warning_threshold
            return True

        return False


class DebugCircuitBreaker:
    """Pass-through breaker: runs the action exactly once, keeps no state."""

    name = "debug"

    def execute(self, action: Callable[[], T]) -> T:
        return action()


def create_breaker(settings=None, sleep: Optional[Callable[[float], None]] = None):
    """Build the breaker configured for this deployment.

    Debug settings get a ``DebugCircuitBreaker`` so failures surface on the
    first attempt; otherwise thresholds and waits come from settings.
    """
    if settings is None:
        from etl_toolbox.config import get_settings

        settings = get_settings()

    if settings.debug:
        return DebugCircuitBreaker()

    return CircuitBreaker(
        warning_threshold=settings.breaker_warning_threshold,
        close_threshold=settings.breaker_close_threshold,
        failure_threshold=settings.breaker_failure_threshold,
        opened_wait_ms=settings.breaker_opened_wait_ms,
        half_opened_wait_ms=settings.breaker_half_opened_wait_ms,
        closed_wait_ms=settings.breaker_closed_wait_ms,
        sleep=sleep or time.sleep,
    )
