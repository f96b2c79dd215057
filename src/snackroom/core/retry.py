"""Exponential backoff for calls to external providers."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger("snackroom.retry")

__all__ = ["RetryPolicy", "retry_with_backoff"]


class RetryPolicy(BaseModel):
    """How many times to retry and how long to wait in between.

    The wait before retry *n* (0-based) is
    ``base_delay_seconds * exponential_base ** n``, capped at
    ``max_delay_seconds``.
    """

    max_retries: int = Field(default=3, ge=0)
    base_delay_seconds: float = Field(default=1.0, gt=0.0)
    max_delay_seconds: float = Field(default=10.0, gt=0.0)
    exponential_base: float = Field(default=2.0, gt=0.0)

    def delay_for(self, retry: int) -> float:
        return min(self.base_delay_seconds * self.exponential_base**retry, self.max_delay_seconds)


async def retry_with_backoff[T](
    fn: Callable[..., Awaitable[T]],
    policy: RetryPolicy,
    *args: Any,
    retry_on: tuple[type[Exception], ...] = (Exception,),
    **kwargs: Any,
) -> T:
    """Await ``fn(*args, **kwargs)``, retrying failures listed in *retry_on*.

    Other exceptions propagate on the first occurrence.  When every
    attempt fails, the final attempt's exception is raised.
    """
    label = getattr(fn, "__qualname__", repr(fn))
    retry = 0
    while True:
        try:
            return await fn(*args, **kwargs)
        except retry_on as exc:
            if retry >= policy.max_retries:
                logger.warning("%s failed after %d attempt(s): %s", label, retry + 1, exc)
                raise
            delay = policy.delay_for(retry)
            retry += 1
            logger.warning(
                "%s failed (%s), retry %d/%d in %.2fs",
                label,
                exc,
                retry,
                policy.max_retries,
                delay,
                extra={"retry": retry, "delay": delay},
            )
            await asyncio.sleep(delay)
