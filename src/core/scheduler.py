"""Fixed-rate polling loop."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

LOGGER = logging.getLogger(__name__)


async def poll_forever(
    cycle: Callable[[], Awaitable[object]],
    interval_seconds: float,
    stop: Optional[asyncio.Event] = None,
) -> None:
    """Run `cycle` immediately, then once per interval until `stop` is set.

    Ticks are scheduled at a fixed rate from the start time. When a cycle
    overruns one or more ticks, the missed ticks are skipped rather than
    queued, so cycles never overlap and never pile up.
    """

    if interval_seconds <= 0:
        raise ValueError("interval_seconds must be positive")

    stop = stop or asyncio.Event()
    loop = asyncio.get_running_loop()
    next_tick = loop.time()

    while not stop.is_set():
        await cycle()

        next_tick += interval_seconds
        now = loop.time()
        if now > next_tick:
            missed = int((now - next_tick) // interval_seconds) + 1
            LOGGER.warning("Cycle overran the poll interval, skipping %s tick(s)", missed)
            next_tick += missed * interval_seconds

        try:
            await asyncio.wait_for(stop.wait(), timeout=next_tick - now)
        except asyncio.TimeoutError:
            continue
