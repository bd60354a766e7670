"""
Request pacing for outbound Scryfall calls.

Scryfall asks clients to keep 50-100ms between requests. A RequestPacer
enforces a minimum interval between consecutive calls made through it.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable


class RequestPacer:
    """
    Enforces a minimum interval between consecutive calls.

    Usage:
        await pacer.wait()
        response = await client.get(...)
    """

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if min_interval < 0:
            raise ValueError("min_interval must be >= 0")
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_call: float | None = None
        self._lock = asyncio.Lock()

    async def wait(self) -> None:
        """Suspend until the next call is allowed, then claim the slot."""
        async with self._lock:
            if self._last_call is not None:
                remaining = self._last_call + self.min_interval - self._clock()
                if remaining > 0:
                    await self._sleep(remaining)
            self._last_call = self._clock()
