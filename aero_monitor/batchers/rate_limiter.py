"""
Rate limiter with exponential backoff for RPC calls.

One limiter instance is shared by every batcher in the process, so all call
sites contend for the same dispatch throttle.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

from .errors import is_rate_limit_error

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Throttle and retry async operations.

    Consecutive dispatches are spaced at least ``min_delay`` seconds apart.
    Operations failing with a rate-limit error are retried up to
    ``max_retries`` times with exponentially growing delay; any other error
    propagates immediately.
    """

    def __init__(
        self,
        min_delay: float = 0.1,
        max_retries: int = 3,
        backoff_multiplier: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if min_delay < 0:
            raise ValueError("min_delay must be >= 0")
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")

        self.min_delay = min_delay
        self.max_retries = max_retries
        self.backoff_multiplier = backoff_multiplier
        self._clock = clock
        self._last_call_time: Optional[float] = None
        self._lock = asyncio.Lock()

    async def _wait_for_next_slot(self):
        async with self._lock:
            if self._last_call_time is not None:
                elapsed = self._clock() - self._last_call_time
                if elapsed < self.min_delay:
                    await asyncio.sleep(self.min_delay - elapsed)
            self._last_call_time = self._clock()

    async def execute(self, operation: Callable[[], Awaitable[Any]]) -> Any:
        """
        Run ``operation`` under the throttle, retrying on rate-limit errors.

        Args:
            operation: Zero-argument callable returning an awaitable

        Returns:
            Whatever the operation returns

        Raises:
            The operation's error when it is not a rate-limit error, or the
            last rate-limit error once retries are exhausted.
        """
        current_delay = self.min_delay

        for attempt in range(self.max_retries + 1):
            try:
                await self._wait_for_next_slot()
                return await operation()
            except Exception as e:
                if not is_rate_limit_error(e) or attempt >= self.max_retries:
                    raise

                logger.warning(
                    f"⚠️ Rate limit hit, waiting {current_delay:.2f}s before retry "
                    f"(attempt {attempt + 1}/{self.max_retries})"
                )
                await asyncio.sleep(current_delay)
                current_delay *= self.backoff_multiplier
