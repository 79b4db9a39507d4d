from __future__ import annotations

import asyncio
import random
from typing import Callable


def retry_schedule(initial_s: float, cap_s: float, retries: int) -> list[float]:
    """
    Delays slept between chart fetch attempts, one per retry.

    retry_schedule(0.25, 4.0, 3) -> [0.25, 0.5, 1.0]; doubling stops at cap_s.
    retries <= 0 means a single attempt and no sleeping.
    """
    if initial_s < 0 or cap_s < 0:
        raise ValueError("backoff delays must be non-negative")
    delays: list[float] = []
    d = min(initial_s, cap_s)
    for _ in range(max(0, retries)):
        delays.append(d)
        d = min(d * 2.0, cap_s)
    return delays


def spread(delay_s: float, *, ratio: float = 0.2, rand: Callable[[], float] = random.random) -> float:
    """delay_s scaled by a random factor in [1 - ratio, 1 + ratio]."""
    return delay_s * (1.0 - ratio + 2.0 * ratio * rand())


async def backoff_sleep(delay_s: float) -> None:
    await asyncio.sleep(spread(delay_s))
