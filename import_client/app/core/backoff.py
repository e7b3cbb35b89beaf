"""Backoff utilities.

`exponential_backoff` yields the delay before each attempt of an operation and waits
between attempts. The reachability probe run at startup uses it; job polling does not
back off and runs on the fixed interval in `constants.POLL_INTERVAL_SECONDS`.
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
    delay = min(initial_delay, max_delay)
    for attempt in range(1, max_attempts + 1):
        yield delay
        if attempt < max_attempts:
            await sleep(delay)
            delay = min(delay * multiplier, max_delay)
