"""Retry policy — bounded re-execution of a fallible async unit of work."""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import Awaitable, Callable, TypeVar

from pagediff.imaging.diff_engine import DimensionMismatch
from pagediff.models.results import TaskFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")


def describe_error(error: BaseException) -> str:
    message = str(error).strip()
    return f"{type(error).__name__}: {message}" if message else type(error).__name__


class RetryPolicy:
    """Runs a unit of work up to ``max_attempts`` times for one target.

    Each attempt is independent; nothing from a failed attempt is carried
    into the next. Exceptions listed in ``fatal`` end the task at once,
    since retrying would only reproduce them.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        backoff_seconds: float = 0.0,
        fatal: tuple[type[BaseException], ...] = (DimensionMismatch,),
    ):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.fatal = fatal

    async def run(self, target: str, work: Callable[[int], Awaitable[T]]) -> T | TaskFailure:
        """Call ``work(attempt)`` until it returns, or give up with a TaskFailure."""
        last_error: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                result = await work(attempt)
            except self.fatal as e:
                logger.error("%s failed with a non-retryable error on attempt %d: %s",
                             target, attempt, e)
                return TaskFailure(target=target, reason=describe_error(e), attempts=attempt)
            except Exception as e:
                last_error = e
                logger.warning("Attempt %d/%d for %s failed: %s",
                               attempt, self.max_attempts, target, e)
                if attempt < self.max_attempts and self.backoff_seconds > 0:
                    delay = self.backoff_seconds * attempt
                    logger.debug("Waiting %.1fs before retrying %s", delay, target)
                    await asyncio.sleep(delay)
                continue

            if attempt > 1:
                logger.info("%s succeeded on attempt %d/%d", target, attempt, self.max_attempts)
            return result

        logger.error("%s failed after %d attempts: %s", target, self.max_attempts, last_error)
        return TaskFailure(
            target=target,
            reason=describe_error(last_error) if last_error else "unknown error",
            attempts=self.max_attempts,
        )


def with_retry(
    max_attempts: int = 3,
    backoff_seconds: float = 0.0,
    fatal: tuple[type[BaseException], ...] = (DimensionMismatch,),
):
    """Decorate ``async def fn(target, attempt)`` so calling ``fn(target)`` retries.

    The wrapped coroutine returns either ``fn``'s result or a TaskFailure.
    """
    policy = RetryPolicy(max_attempts, backoff_seconds, fatal)

    def decorator(fn: Callable[[str, int], Awaitable[T]]) -> Callable[[str], Awaitable[T | TaskFailure]]:
        @functools.wraps(fn)
        async def wrapper(target: str) -> T | TaskFailure:
            return await policy.run(target, lambda attempt: fn(target, attempt))

        wrapper.retry_policy = policy
        return wrapper

    return decorator
