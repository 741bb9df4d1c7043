"""Retry helpers for idempotent operations against external services.

This module provides a generic exponential-backoff wrapper plus a method
decorator that applies it using the retry policy held by the decorated
object (for example, an issue tracker adapter).
"""

import asyncio
import functools
import inspect
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

import structlog

from github_triage_manager.exceptions import TransientNetworkError
from github_triage_manager.utils.constants import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_DELAY_SECONDS,
    DEFAULT_RETRY_JITTER_SECONDS,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

T = TypeVar("T")
F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


@dataclass(frozen=True)
class RetryPolicy:
    """Tunables for exponential backoff."""

    retries: int = DEFAULT_MAX_RETRIES
    delay: float = DEFAULT_RETRY_DELAY_SECONDS
    jitter: float = DEFAULT_RETRY_JITTER_SECONDS


def compute_backoff_delay(attempt: int, delay: float, jitter: float) -> float:
    """Return the wait before the next attempt: ``delay * 2**attempt`` plus random jitter."""
    return delay * (2**attempt) + random.uniform(0, jitter)


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    retries: int = DEFAULT_MAX_RETRIES,
    delay: float = DEFAULT_RETRY_DELAY_SECONDS,
    jitter: float = DEFAULT_RETRY_JITTER_SECONDS,
    retry_on: tuple[type[BaseException], ...] = (TransientNetworkError,),
) -> T:
    """Await ``operation`` with up to ``retries`` additional attempts on retryable errors.

    Args:
        operation: Zero-argument callable returning the awaitable to run on each attempt.
        retries: Maximum number of retry attempts after the first call.
        delay: Base delay in seconds, doubled on each attempt.
        jitter: Upper bound in seconds of the random jitter added to each delay.
        retry_on: Exception types that trigger a retry. Anything else propagates immediately.

    Returns:
        The result of the first successful attempt.

    Raises:
        The last retryable exception once all attempts are exhausted.
    """
    name = getattr(operation, "__name__", repr(operation))
    attempts = max(retries, 0) + 1
    last_error: BaseException | None = None
    for attempt in range(attempts):
        try:
            return await operation()
        except retry_on as exc:
            last_error = exc
            if attempt + 1 == attempts:
                break
            wait_time = compute_backoff_delay(attempt, delay, jitter)
            logger.warning(
                "Retryable error, backing off",
                operation=name,
                attempt=attempt + 1,
                max_retries=retries,
                wait_time=round(wait_time, 3),
                error_type=type(exc).__name__,
                error=str(exc),
            )
            await asyncio.sleep(wait_time)

    logger.error("Max retries reached", operation=name, attempts=attempts, error_type=type(last_error).__name__, error=str(last_error))
    raise last_error  # type: ignore[misc]


def retry_transient_errors(func: F) -> F:
    """Decorator for async methods, retrying them with the owner's ``retry_policy``.

    The decorated method's instance must expose a ``retry_policy`` attribute
    holding a :class:`RetryPolicy`; a default policy is used otherwise.
    """
    if not inspect.iscoroutinefunction(func):
        raise TypeError(f"Function {func.__name__} decorated with @retry_transient_errors must be async.")

    @functools.wraps(func)
    async def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
        policy: RetryPolicy = getattr(self, "retry_policy", None) or RetryPolicy()

        async def attempt() -> Any:
            return await func(self, *args, **kwargs)

        attempt.__name__ = func.__name__
        return await retry_with_backoff(attempt, retries=policy.retries, delay=policy.delay, jitter=policy.jitter)

    return wrapper  # type: ignore
