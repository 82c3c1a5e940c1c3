"""Tests for the RPC rate limiter."""
import itertools

import pytest
from unittest.mock import AsyncMock, patch

from aero_monitor.batchers.errors import NetworkError, RateLimitError
from aero_monitor.batchers.rate_limiter import RateLimiter

SLEEP = "aero_monitor.batchers.rate_limiter.asyncio.sleep"


def spaced_clock(step=10.0):
    """Clock whose readings are always far enough apart to skip throttling."""
    counter = itertools.count(start=0.0, step=step)
    return lambda: next(counter)


class StatusError(Exception):
    def __init__(self, message, status):
        super().__init__(message)
        self.status = status


class TestRateLimiter:
    def test_rejects_negative_settings(self):
        with pytest.raises(ValueError):
            RateLimiter(min_delay=-1)
        with pytest.raises(ValueError):
            RateLimiter(max_retries=-1)

    @pytest.mark.asyncio
    async def test_returns_operation_result(self):
        limiter = RateLimiter(min_delay=0.1, clock=spaced_clock())
        operation = AsyncMock(return_value="ok")

        with patch(SLEEP, new_callable=AsyncMock) as sleep:
            assert await limiter.execute(operation) == "ok"

        operation.assert_awaited_once()
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_retries_with_exponential_backoff(self):
        limiter = RateLimiter(min_delay=0.1, max_retries=3, clock=spaced_clock())
        operation = AsyncMock(side_effect=[
            RateLimitError("HTTP 429"),
            RateLimitError("HTTP 429"),
            "ok",
        ])

        with patch(SLEEP, new_callable=AsyncMock) as sleep:
            assert await limiter.execute(operation) == "ok"

        assert operation.await_count == 3
        delays = [c.args[0] for c in sleep.await_args_list]
        assert delays == pytest.approx([0.1, 0.2])

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self):
        limiter = RateLimiter(min_delay=0.1, max_retries=2, clock=spaced_clock())
        operation = AsyncMock(side_effect=RateLimitError("HTTP 429"))

        with patch(SLEEP, new_callable=AsyncMock) as sleep:
            with pytest.raises(RateLimitError):
                await limiter.execute(operation)

        assert operation.await_count == 3
        assert sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_other_errors_propagate_immediately(self):
        limiter = RateLimiter(min_delay=0.1, max_retries=3, clock=spaced_clock())
        operation = AsyncMock(side_effect=NetworkError("connection reset"))

        with patch(SLEEP, new_callable=AsyncMock) as sleep:
            with pytest.raises(NetworkError):
                await limiter.execute(operation)

        operation.assert_awaited_once()
        sleep.assert_not_awaited()

    @pytest.mark.parametrize("error", [
        Exception("429 Too Many Requests"),
        Exception("Rate limit exceeded for this key"),
        StatusError("slow down", 429),
    ])
    @pytest.mark.asyncio
    async def test_recognizes_rate_limit_shapes(self, error):
        limiter = RateLimiter(min_delay=0.1, max_retries=1, clock=spaced_clock())
        operation = AsyncMock(side_effect=[error, "ok"])

        with patch(SLEEP, new_callable=AsyncMock):
            assert await limiter.execute(operation) == "ok"

        assert operation.await_count == 2

    @pytest.mark.asyncio
    async def test_spaces_consecutive_dispatches(self):
        limiter = RateLimiter(min_delay=0.25, clock=lambda: 100.0)
        operation = AsyncMock(return_value=None)

        with patch(SLEEP, new_callable=AsyncMock) as sleep:
            await limiter.execute(operation)
            sleep.assert_not_awaited()

            await limiter.execute(operation)

        sleep.assert_awaited_once()
        assert sleep.await_args.args[0] == pytest.approx(0.25)
