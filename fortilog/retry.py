from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from .config import settings
from .errors import describe_error


logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[None]]


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    max_retries: Optional[int] = None,
    base_delay: Optional[float] = None,
    sleep: SleepFn = asyncio.sleep,
    should_retry: Optional[Callable[[Exception], bool]] = None,
) -> T:
    """Run `operation`, retrying on failure with linear backoff.

    Before retry N the call sleeps `N * base_delay` seconds. Every error is
    retried unless `should_retry` says otherwise; once the budget is spent the
    last error is raised unchanged.
    """
    retries = settings.max_retries if max_retries is None else max(0, int(max_retries))
    delay = settings.retry_delay_seconds if base_delay is None else float(base_delay)

    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as e:
            if attempt >= retries or (should_retry is not None and not should_retry(e)):
                raise
            attempt += 1
            wait = attempt * delay
            logger.info("attempt %d failed (%s), retrying in %.1fs", attempt, describe_error(e), wait)
            await sleep(wait)
