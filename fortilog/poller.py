from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set


logger = logging.getLogger(__name__)


class PollScheduler:
    """Runs `callback` now and then every `interval_seconds` (fixed rate).

    Each cycle is its own task, so a slow cycle never delays the next tick and
    `trigger()` can run one alongside the timer. `cancel()` stops the timer and
    every cycle still in flight; it is idempotent.
    """

    def __init__(self, callback: Callable[[], Awaitable[None]], interval_seconds: float) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._callback = callback
        self._interval = float(interval_seconds)
        self._timer: Optional[asyncio.Task] = None
        self._cycles: Set[asyncio.Task] = set()
        self._cancelled = False

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def start(self) -> None:
        if self.running:
            return
        self._cancelled = False
        self._timer = asyncio.get_running_loop().create_task(self._run())

    def trigger(self) -> asyncio.Task:
        return self._spawn()

    def _spawn(self) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self._cycle())
        self._cycles.add(task)
        task.add_done_callback(self._cycles.discard)
        return task

    async def _cycle(self) -> None:
        if self._cancelled:
            return
        try:
            await self._callback()
        except Exception:
            logger.exception("poll cycle failed")

    async def _run(self) -> None:
        while not self._cancelled:
            self._spawn()
            await asyncio.sleep(self._interval)

    def cancel(self) -> None:
        self._cancelled = True
        tasks = list(self._cycles)
        if self._timer is not None:
            tasks.append(self._timer)
            self._timer = None
        for t in tasks:
            t.cancel()
        self._cycles.clear()

    async def stop(self) -> None:
        """Cancel and wait until every cancelled task has unwound."""
        tasks = list(self._cycles)
        if self._timer is not None:
            tasks.append(self._timer)
        self.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
