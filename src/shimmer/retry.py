"""Bounded retry with fixed backoff for short, fallible operations.

The exception raised after the last attempt is the original one from the
action, never a wrapper, so callers can still tell a missing file from a
permission problem.
"""

from __future__ import annotations

import dataclasses
import logging
import random
import time
from typing import TYPE_CHECKING

import anyio

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class RetryPolicy:
    """How many times to retry and how long to wait in between.

    ``max_attempts`` counts retries after the initial call, so an action is
    invoked at most ``max_attempts + 1`` times.
    """

    max_attempts: int
    delay: float
    jitter: float = 0.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.delay < 0:
            raise ValueError(f"delay must be >= 0, got {self.delay}")
        if self.jitter < 0:
            raise ValueError(f"jitter must be >= 0, got {self.jitter}")

    def backoff(self) -> float:
        """Seconds to wait before the next attempt."""
        if self.jitter:
            return self.delay + random.uniform(0, self.jitter)
        return self.delay


DEFAULT_POLICY = RetryPolicy(max_attempts=2, delay=0.25)


def retry[T](
    action: Callable[[], T],
    policy: RetryPolicy = DEFAULT_POLICY,
    *,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], object] = time.sleep,
) -> T:
    """Call ``action`` until it succeeds or the policy's retries run out.

    Blocks the calling thread for the backoff between attempts. Exceptions
    not matching ``retry_on`` propagate immediately.
    """
    remaining = policy.max_attempts
    while True:
        try:
            return action()
        except retry_on as e:
            if remaining == 0:
                logger.warning(f"Giving up after {policy.max_attempts + 1} attempts: {e!r}")
                raise
            remaining -= 1
            logger.debug(f"Attempt failed ({e!r}), {remaining + 1} retries left")
            sleep(policy.backoff())


async def retry_async[T](
    action: Callable[[], Awaitable[T]],
    policy: RetryPolicy = DEFAULT_POLICY,
    *,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
) -> T:
    """Async variant of :func:`retry` that sleeps without blocking the event loop."""
    remaining = policy.max_attempts
    while True:
        try:
            return await action()
        except retry_on as e:
            if remaining == 0:
                logger.warning(f"Giving up after {policy.max_attempts + 1} attempts: {e!r}")
                raise
            remaining -= 1
            logger.debug(f"Attempt failed ({e!r}), {remaining + 1} retries left")
            await anyio.sleep(policy.backoff())
