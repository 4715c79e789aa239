"""Exponential backoff for calls to LLM providers and other flaky upstreams.

``execute_with_retry`` re-runs an async operation while its failures are
classified as retryable by the policy. Delays grow as
``base_delay * 2 ** attempt`` (attempt 0 for the first retry), are capped at
``max_delay`` and carry no jitter. The error surfaced to the caller is always
the last one observed.

Classification is a case-insensitive substring match on the error message.
It is heuristic on purpose: provider SDKs disagree on exception types, but
their messages consistently mention status codes and wording such as
"rate limit" or "overloaded". Errors matching neither list are not retried.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Optional, Tuple, TypeVar

from .errors import ErrorKind

logger = logging.getLogger(__name__)

T = TypeVar("T")

RetryObserver = Callable[[int, Exception, float], None]

TRANSIENT_ERROR_PATTERNS: Tuple[str, ...] = (
    # network
    "econnrefused",
    "enotfound",
    "etimedout",
    "econnreset",
    "network",
    "socket",
    # timeouts
    "timeout",
    "timed out",
    # rate limits
    "rate limit",
    "too many requests",
    "429",
    # upstream gateways
    "502",
    "503",
    "504",
    "bad gateway",
    "service unavailable",
    "gateway timeout",
    # provider capacity
    "overloaded",
    "capacity",
    "temporarily unavailable",
)

PERMANENT_ERROR_PATTERNS: Tuple[str, ...] = (
    # validation
    "invalid",
    "validation",
    "must be",
    "required",
    "400",
    # auth
    "unauthorized",
    "forbidden",
    "401",
    "403",
    # not found
    "not found",
    "404",
    # the task should be broken down instead of retried
    "recursion limit",
    "maximum recursion",
)


def _matches(error: BaseException, patterns: Tuple[str, ...]) -> bool:
    message = str(error).lower()
    return any(pattern in message for pattern in patterns)


def is_transient_error(error: BaseException) -> bool:
    """Return True for network, timeout, rate-limit, 5xx gateway and capacity errors."""
    return _matches(error, TRANSIENT_ERROR_PATTERNS)


def is_permanent_error(error: BaseException) -> bool:
    """Return True for validation, auth, not-found and recursion-limit errors."""
    return _matches(error, PERMANENT_ERROR_PATTERNS)


def classify_error(error: BaseException) -> ErrorKind:
    """Map an upstream error to an ``ErrorKind`` for reporting.

    Transient wording wins over permanent wording, mirroring the retry
    decision of the default policies.
    """
    if is_transient_error(error):
        return ErrorKind.transient_upstream
    if is_permanent_error(error):
        return ErrorKind.permanent_upstream
    return ErrorKind.execution_failed


@dataclass(frozen=True)
class RetryPolicy:
    """How ``execute_with_retry`` retries an operation.

    Attributes:
        max_retries: Retries after the first attempt; the operation runs at most ``max_retries + 1`` times.
        base_delay: Delay in seconds before the first retry.
        max_delay: Upper bound in seconds for any single delay.
        is_retryable: Decides whether a failure may be retried.
        on_retry: Observer called as ``on_retry(attempt, error, delay)`` before each sleep, ``attempt`` being 1-based.
    """

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0
    is_retryable: Callable[[BaseException], bool] = is_transient_error
    on_retry: Optional[RetryObserver] = None

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be >= 0")

    def delay_for(self, attempt: int) -> float:
        """Delay before retry number ``attempt + 1`` (``attempt`` is 0-indexed)."""
        return min(self.base_delay * (2**attempt), self.max_delay)

    def with_observer(self, on_retry: Optional[RetryObserver]) -> "RetryPolicy":
        return replace(self, on_retry=on_retry)


DEFAULT_RETRY_POLICY = RetryPolicy(max_retries=3, base_delay=1.0, max_delay=10.0)

# LLM providers rate limit aggressively, so back off for longer.
LLM_RETRY_POLICY = RetryPolicy(max_retries=3, base_delay=2.0, max_delay=30.0)

NETWORK_RETRY_POLICY = RetryPolicy(max_retries=2, base_delay=1.0, max_delay=5.0)


async def execute_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run ``operation`` and retry it with exponential backoff.

    Args:
        operation: Zero-argument coroutine factory; every attempt calls it afresh.
        policy: Retry bounds, classifier and observer.
        sleep: Suspension used between attempts (injectable for tests).

    Returns:
        The result of the first successful attempt.

    Raises:
        Exception: The last error once it is not retryable or retries are exhausted.
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as error:
            if not policy.is_retryable(error) or attempt >= policy.max_retries:
                raise

            delay = policy.delay_for(attempt)
            logger.warning(
                f"Transient failure (retry {attempt + 1}/{policy.max_retries}) in {delay:g}s: {error}"
            )
            if policy.on_retry is not None:
                policy.on_retry(attempt + 1, error, delay)

            await sleep(delay)
            attempt += 1
