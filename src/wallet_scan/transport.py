"""Timeout and retry wrappers every network call goes through.

A timed-out operation is abandoned, not torn down: when the blocking request
runs in a worker thread it keeps running until the HTTP library's own
timeout fires, and a JSON-RPC call that already reached the node may still
have taken effect. Callers accept that risk; it is bounded by the timeout.
"""

from __future__ import annotations

import asyncio
from contextlib import nullcontext
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncContextManager, Awaitable, Callable, Generator, TypeVar

import backoff

from .constants import (
    DEFAULT_BACKOFF_BASE,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_RETRY_ATTEMPTS,
)
from .errors import FailureReason, SourceError, is_permanent_failure
from .logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

Limiter = Callable[[], AsyncContextManager[Any]]


class BackoffStrategy(str, Enum):
    LINEAR = "linear"
    EXPONENTIAL = "exponential"


def linear(factor: float = 1.0) -> Generator[float | None, Any, None]:
    """Wait generator yielding ``factor * (n + 1)`` for the n-th retry."""
    # Advance past initial .send() call
    yield None
    n = 0
    while True:
        yield factor * (n + 1)
        n += 1


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how patiently a call is retried.

    ``attempts`` counts every try, including the first one.
    """

    attempts: int = DEFAULT_RETRY_ATTEMPTS
    backoff_base: float = DEFAULT_BACKOFF_BASE
    strategy: BackoffStrategy = BackoffStrategy.EXPONENTIAL

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError(f"attempts must be at least 1, got {self.attempts}")
        if self.backoff_base < 0:
            raise ValueError(
                f"backoff_base must be non-negative, got {self.backoff_base}"
            )

    @property
    def wait_gen(self) -> Callable[..., Generator[Any, Any, None]]:
        if self.strategy == BackoffStrategy.LINEAR:
            return linear
        return backoff.expo


async def call_with_timeout(
    operation: Callable[[], Awaitable[T]],
    duration: float,
    *,
    limiter: Limiter | None = None,
) -> T:
    """Run ``operation`` and give up once ``duration`` seconds have elapsed.

    When ``limiter`` is given, its context is entered first and the deadline
    starts only once it is held, so time spent queueing for a request slot
    is not counted.

    Raises:
        SourceError: With reason TIMEOUT when the deadline elapses first.
    """
    async with limiter() if limiter else nullcontext():
        try:
            async with asyncio.timeout(duration):
                return await operation()
        except TimeoutError as exc:
            raise SourceError(
                FailureReason.TIMEOUT, f"no response within {duration:.2f}s"
            ) from exc


async def call_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    description: str = "request",
) -> T:
    """Run ``operation`` up to ``policy.attempts`` times.

    Permanent failures (credential not enabled, unparseable response) are not
    retried. The last failure is re-raised once the budget is exhausted.
    """

    def _on_backoff(details: Any) -> None:
        logger.warning(
            "%s failed (attempt %d of %d), retrying in %.2fs: %s",
            description,
            details["tries"],
            policy.attempts,
            details["wait"],
            details.get("exception"),
        )

    def _on_giveup(details: Any) -> None:
        logger.debug(
            "%s giving up after %d attempt(s): %s",
            description,
            details["tries"],
            details.get("exception"),
        )

    @backoff.on_exception(
        policy.wait_gen,
        Exception,
        max_tries=policy.attempts,
        giveup=is_permanent_failure,
        on_backoff=_on_backoff,
        on_giveup=_on_giveup,
        jitter=None,
        factor=policy.backoff_base,
    )
    async def _attempt() -> T:
        return await operation()

    return await _attempt()


async def guarded_call(
    operation: Callable[[], Awaitable[T]],
    *,
    timeout: float = DEFAULT_REQUEST_TIMEOUT,
    policy: RetryPolicy | None = None,
    description: str = "request",
    limiter: Limiter | None = None,
) -> T:
    """Retry a timeout-wrapped call.

    Worst case latency is ``timeout * attempts`` plus the backoff delays,
    plus any wait for ``limiter`` before each try.
    """
    return await call_with_retry(
        lambda: call_with_timeout(operation, timeout, limiter=limiter),
        policy or RetryPolicy(),
        description=description,
    )
