"""Backoff utilities.

`exponential_backoff` yields the current delay so the caller can attempt an
operation, then sleeps before handing out the next, larger delay. Used for
connection establishment (e.g. the Redis connection in the composition root),
never inside the subscribe loops, whose timing lives in `PollingStrategy`.
"""
import asyncio
from typing import AsyncIterator, Awaitable, Callable


async def exponential_backoff(
    initial_delay: float,
    max_delay: float,
    multiplier: float,
    max_attempts: int,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> AsyncIterator[float]:
    delay = initial_delay
    for attempt in range(1, max_attempts + 1):
        yield delay
        if attempt < max_attempts:
            delay = min(delay * multiplier, max_delay)
            await sleep(delay)
