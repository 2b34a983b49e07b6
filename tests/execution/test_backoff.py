"""Tests for backoff strategies."""

import time
from unittest.mock import MagicMock, patch

import pytest

from fallible.core.context import background
from fallible.execution.backoff import (
    BackoffStrategy,
    ConstantBackoff,
    ExponentialBackoff,
    LinearBackoff,
    LoggingBackoff,
    NoBackoff,
)


class TestExponentialBackoff:
    """Tests for ExponentialBackoff strategy."""

    def test_default_configuration(self):
        """Test default configuration values."""
        strategy = ExponentialBackoff()
        assert strategy.base_delay == 1.0
        assert strategy.max_delay == 60.0
        assert strategy.multiplier == 2.0
        assert strategy.jitter is True

    def test_delay_calculation_no_jitter(self):
        """Test delay calculation without jitter."""
        strategy = ExponentialBackoff(base_delay=1.0, multiplier=2.0, max_delay=60.0, jitter=False)
        assert strategy.next_delay(0) == 1.0
        assert strategy.next_delay(1) == 2.0
        assert strategy.next_delay(2) == 4.0
        assert strategy.next_delay(3) == 8.0

    def test_delay_capped_at_max(self):
        """Test delay capped at max_delay."""
        strategy = ExponentialBackoff(base_delay=10.0, multiplier=2.0, max_delay=30.0, jitter=False)
        assert strategy.next_delay(1) == 20.0
        assert strategy.next_delay(2) == 30.0
        assert strategy.next_delay(10) == 30.0

    def test_jitter_within_range(self):
        """Jittered delays stay within +/- jitter_range of the base."""
        strategy = ExponentialBackoff(base_delay=1.0, jitter=True, jitter_range=0.25)
        for _ in range(50):
            assert 0.75 <= strategy.next_delay(0) <= 1.25

    def test_jitter_never_negative(self):
        strategy = ExponentialBackoff(base_delay=0.0, jitter=True, jitter_range=1.0)
        assert strategy.next_delay(0) >= 0.0


class TestLinearAndConstant:
    """Tests for LinearBackoff, ConstantBackoff and NoBackoff."""

    def test_linear(self):
        strategy = LinearBackoff(base_delay=1.0, increment=0.5, max_delay=2.0)
        assert [strategy.next_delay(a) for a in range(4)] == [1.0, 1.5, 2.0, 2.0]

    def test_constant_default_is_200ms(self):
        assert ConstantBackoff().next_delay(0) == 0.2
        assert ConstantBackoff(1.5).next_delay(9) == 1.5

    def test_no_backoff(self, ctx):
        ctx_mock = MagicMock()
        NoBackoff()(ctx_mock, 0, None)
        ctx_mock.wait.assert_not_called()
        assert NoBackoff().next_delay(3) == 0.0

    def test_strategies_are_immutable(self):
        with pytest.raises(AttributeError):
            ConstantBackoff().delay = 1.0


class TestWaiting:
    """Tests for the cancellable wait performed by __call__."""

    def test_call_waits_on_context(self):
        """Strategies wait through ctx.wait with the computed delay."""
        ctx = MagicMock()
        ConstantBackoff(0.7)(ctx, 3, ValueError())
        ctx.wait.assert_called_once_with(0.7)

    def test_zero_delay_skips_wait(self):
        ctx = MagicMock()
        ConstantBackoff(0.0)(ctx, 0, None)
        ctx.wait.assert_not_called()

    def test_cancelled_context_returns_promptly(self):
        """A long backoff returns at once when the context is already cancelled."""
        ctx = background()
        ctx.cancel()
        start = time.monotonic()
        ConstantBackoff(30)(ctx, 0, None)
        assert time.monotonic() - start < 1

    def test_custom_strategy(self):
        """Subclasses only need next_delay."""

        class Fixed(BackoffStrategy):
            def next_delay(self, attempt):
                return attempt * 0.1

        ctx = MagicMock()
        Fixed()(ctx, 2, None)
        ctx.wait.assert_called_once_with(pytest.approx(0.2))


class TestLoggingBackoff:
    """Tests for LoggingBackoff."""

    def test_logs_and_delegates(self):
        inner = MagicMock(spec=BackoffStrategy)
        error = ConnectionResetError("reset")
        ctx = MagicMock()
        with patch("fallible.execution.backoff.logger") as logger:
            LoggingBackoff(inner)(ctx, 2, error)
        inner.assert_called_once_with(ctx, 2, error)
        logger.debug.assert_called_once()
        args, kwargs = logger.debug.call_args
        assert args == ("retry_backoff",)
        assert kwargs["attempt"] == 2
        assert kwargs["error_type"] == "ConnectionResetError"

    def test_next_delay_from_inner(self):
        assert LoggingBackoff(ConstantBackoff(0.3)).next_delay(0) == 0.3
