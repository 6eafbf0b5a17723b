"""Unit tests for the retrying circuit breaker."""

import pytest

from etl_toolbox.config.settings import Settings
from etl_toolbox.exceptions import (
    ConfigurationError,
    SourceNotFoundError,
    TransientFailure,
    ValidationError,
)
from etl_toolbox.reliability import (
    BreakerState,
    CircuitBreaker,
    DebugCircuitBreaker,
    create_breaker,
)


class Flaky:
    """Callable failing a fixed number of times before returning a value."""

    def __init__(self, failures, error=ConnectionError, value="ok"):
        self.failures = failures
        self.error = error
        self.value = value
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error(f"attempt {self.calls} failed")
        return self.value


@pytest.mark.unit
class TestCircuitBreakerTransitions:
    def test_success_on_first_attempt_keeps_opened(self, fast_breaker, recorded_sleeps):
        assert fast_breaker.execute(lambda: 42) == 42

        assert fast_breaker.state is BreakerState.OPENED
        assert fast_breaker.success_count == 1
        assert recorded_sleeps == []

    def test_warning_threshold_moves_to_half_opened(self, fast_breaker, recorded_sleeps):
        action = Flaky(failures=2)

        assert fast_breaker.execute(action) == "ok"

        assert action.calls == 3
        assert fast_breaker.state is BreakerState.HALF_OPENED
        assert fast_breaker.success_count == 1
        assert fast_breaker.failure_count == 0
        assert recorded_sleeps == [0.01]

    def test_successes_in_half_opened_reset_to_opened(self, fast_breaker):
        fast_breaker.execute(Flaky(failures=2))
        assert fast_breaker.state is BreakerState.HALF_OPENED

        fast_breaker.execute(lambda: None)

        assert fast_breaker.state is BreakerState.OPENED
        assert fast_breaker.success_count == 0
        assert fast_breaker.failure_count == 0
        assert fast_breaker.wait_ms == 0

    def test_close_threshold_moves_to_closed(self, fast_breaker, recorded_sleeps):
        fast_breaker.execute(Flaky(failures=4))

        # the success in CLOSED steps back to HALF_OPENED
        assert fast_breaker.state is BreakerState.HALF_OPENED
        assert recorded_sleeps == [0.01, 0.01, 0.1]

    def test_failure_threshold_raises_transient_failure(
        self, fast_breaker, recorded_sleeps
    ):
        action = Flaky(failures=100)

        with pytest.raises(TransientFailure) as exc_info:
            fast_breaker.execute(action)

        assert action.calls == 6
        assert fast_breaker.state is BreakerState.CLOSED
        assert fast_breaker.failure_count == fast_breaker.warning_threshold
        assert recorded_sleeps == [0.01, 0.01, 0.1, 0.1]
        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert exc_info.value.original_error is exc_info.value.__cause__

    def test_after_terminal_failure_budget_restarts_from_warning(self, fast_breaker):
        with pytest.raises(TransientFailure):
            fast_breaker.execute(Flaky(failures=100))

        action = Flaky(failures=100)
        with pytest.raises(TransientFailure):
            fast_breaker.execute(action)

        # clamped to 2, so four more failures reach the threshold of 6
        assert action.calls == 4

    def test_reset_returns_to_opened(self, fast_breaker):
        fast_breaker.execute(Flaky(failures=3))
        fast_breaker.reset()

        assert fast_breaker.state is BreakerState.OPENED
        assert fast_breaker.failure_count == 0


@pytest.mark.unit
class TestNonRetryableErrors:
    @pytest.mark.parametrize(
        "error", [ValidationError, ConfigurationError, SourceNotFoundError]
    )
    def test_usage_faults_bypass_the_breaker(self, fast_breaker, error):
        action = Flaky(failures=1, error=error)

        with pytest.raises(error):
            fast_breaker.execute(action)

        assert action.calls == 1
        assert fast_breaker.failure_count == 0
        assert fast_breaker.state is BreakerState.OPENED


@pytest.mark.unit
class TestConfigurationValidation:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"warning_threshold": 0},
            {"warning_threshold": 6, "close_threshold": 6},
            {"close_threshold": 10, "failure_threshold": 10},
            {"opened_wait_ms": -1},
            {"opened_wait_ms": 5000, "half_opened_wait_ms": 5000},
            {"half_opened_wait_ms": 300000, "closed_wait_ms": 300000},
        ],
    )
    def test_misordered_configuration_rejected(self, kwargs):
        with pytest.raises(ConfigurationError):
            CircuitBreaker(**kwargs)

    def test_defaults_are_valid(self):
        breaker = CircuitBreaker()

        assert breaker.state is BreakerState.OPENED
        assert breaker.wait_ms == 0


@pytest.mark.unit
class TestBreakerFactory:
    def test_debug_settings_give_pass_through_breaker(self):
        breaker = create_breaker(Settings(debug=True))

        assert isinstance(breaker, DebugCircuitBreaker)

    def test_debug_breaker_runs_action_once(self):
        action = Flaky(failures=1)

        with pytest.raises(ConnectionError):
            DebugCircuitBreaker().execute(action)

        assert action.calls == 1

    def test_thresholds_come_from_settings(self):
        settings = Settings(
            breaker_warning_threshold=1,
            breaker_close_threshold=2,
            breaker_failure_threshold=3,
            breaker_opened_wait_ms=0,
            breaker_half_opened_wait_ms=1,
            breaker_closed_wait_ms=2,
        )
        sleeps = []

        breaker = create_breaker(settings, sleep=sleeps.append)

        with pytest.raises(TransientFailure):
            breaker.execute(Flaky(failures=100))
        assert sleeps == [0.001, 0.002]

    def test_invalid_settings_surface_as_configuration_error(self):
        settings = Settings(breaker_warning_threshold=5, breaker_close_threshold=4)

        with pytest.raises(ConfigurationError):
            create_breaker(settings)
