"""Deadline composition for time-boxed stages."""

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

from app.errors import ProcessingTimeoutError

T = TypeVar("T")


class Deadline:
    """Cancellation token for one invocation.

    Armed with a total budget when created. Each stage runs under
    ``min(stage budget, remaining budget)``, so no stage timeout can outlive
    the invocation. When the composed timeout fires, the caller learns whether
    the stage budget or the outer budget ran out.
    """

    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.budget = seconds
        self._clock = clock
        self.started_at = clock()

    def elapsed(self) -> float:
        return self._clock() - self.started_at

    def remaining(self) -> float:
        return max(0.0, self.budget - self.elapsed())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0

    def bound(self, stage_seconds: float) -> float:
        """Timeout a stage should use."""
        return min(stage_seconds, self.remaining())

    async def run(
        self,
        awaitable: Awaitable[T],
        stage_seconds: float,
        on_stage_timeout: Callable[[], Exception],
    ) -> T:
        """Await ``awaitable`` under the composed timeout.

        Raises ``ProcessingTimeoutError`` if the outer budget ran out, otherwise
        the exception built by ``on_stage_timeout``.
        """
        timeout = self.bound(stage_seconds)
        if timeout <= 0:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise ProcessingTimeoutError(f"Processing deadline of {self.budget:.0f}s exceeded")
        try:
            return await asyncio.wait_for(awaitable, timeout=timeout)
        except asyncio.TimeoutError:
            # The outer budget wins when both ran out
            if timeout < stage_seconds or self.expired:
                raise ProcessingTimeoutError(f"Processing deadline of {self.budget:.0f}s exceeded") from None
            raise on_stage_timeout() from None
