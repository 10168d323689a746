from __future__ import annotations

import asyncio
import functools
import logging
from typing import Any, Awaitable, Callable, TypeVar

from utils.cancellation import CancellationToken
from utils.errors import RunCancelled, classify_provider_error

logger = logging.getLogger(__name__)

T = TypeVar("T")


def classify_error(exc: BaseException) -> str:
    """Return canonical error kind for provider exceptions."""
    return classify_provider_error(exc)


def should_retry(kind: str) -> bool:
    """Return True if errors of *kind* are retryable."""
    return kind in {"rate_limit", "quota", "transient", "timeout"}


def is_retryable(exc: BaseException) -> bool:
    return should_retry(classify_error(exc))


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    delay: float = 1.0,
    *,
    backoff: float = 1.0,
    cap: float = 8.0,
    retry_if: Callable[[BaseException], bool] | None = None,
    cancel_token: CancellationToken | None = None,
    on_retry: Callable[[int, BaseException], Any] | None = None,
) -> T:
    """Await ``operation()`` up to *max_attempts* times.

    The first successful result is returned.  Between attempts the controller
    waits ``delay * backoff ** (attempt - 1)`` seconds (at most *cap*).  The
    last error is re-raised once attempts are exhausted, or immediately when
    *retry_if* rejects it.  A cancelled *cancel_token* interrupts the wait and
    raises :class:`RunCancelled`.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")
    attempt = 0
    while True:
        attempt += 1
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()
        try:
            return await operation()
        except RunCancelled:
            raise
        except Exception as exc:
            if attempt >= max_attempts:
                raise
            if retry_if is not None and not retry_if(exc):
                raise
            wait = min(cap, delay * (backoff ** (attempt - 1)))
            logger.info(
                "retry attempt=%d/%d wait=%.2fs kind=%s error=%s",
                attempt,
                max_attempts,
                wait,
                classify_error(exc),
                exc,
            )
            if on_retry is not None:
                on_retry(attempt, exc)
            if cancel_token is not None:
                await cancel_token.sleep(wait)
            elif wait > 0:
                await asyncio.sleep(wait)


def retrying(
    max_attempts: int = 3,
    delay: float = 1.0,
    **options: Any,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Decorator form of :func:`with_retry` for coroutine functions."""

    def decorate(fn: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            return await with_retry(
                lambda: fn(*args, **kwargs), max_attempts, delay, **options
            )

        return wrapper

    return decorate


__all__ = [
    "classify_error",
    "should_retry",
    "is_retryable",
    "with_retry",
    "retrying",
]
