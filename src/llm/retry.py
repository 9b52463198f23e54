# src/llm/retry.py — v2
"""Retry policy with exponential backoff, shared by every provider.

Attempt ``k`` (0-based) that fails with a retryable error is followed by a
sleep of ``initial_backoff_ms * 2**k`` before attempt ``k + 1``. Fatal
errors surface on the spot and do not consume retry budget. When the
budget is spent the last error is re-raised unchanged.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

import httpx

from transcriptflow.llm.errors import ProviderError

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget and backoff base."""

    max_retries: int = 3
    initial_backoff_ms: int = 1000

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.initial_backoff_ms < 0:
            raise ValueError(
                f"initial_backoff_ms must be >= 0, got {self.initial_backoff_ms}"
            )

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def backoff_ms(self, attempt: int) -> int:
        """Delay after failed attempt ``attempt`` (0-based)."""
        return self.initial_backoff_ms * (2 ** attempt)


NO_RETRY = RetryPolicy(max_retries=0, initial_backoff_ms=0)


def is_retryable(error: BaseException) -> bool:
    """Decide whether an error may consume one retry."""
    if isinstance(error, ProviderError):
        return error.retryable
    return isinstance(error, (httpx.TransportError, TimeoutError, ConnectionError))


async def with_retry(
    fn: Callable[..., Awaitable[Any]],
    *args: Any,
    policy: RetryPolicy | None = None,
    sleep: SleepFn = asyncio.sleep,
    label: str = "call",
    **kwargs: Any,
) -> Any:
    """Execute an async function under a retry policy.

    Args:
        fn: Coroutine function to call.
        *args: Positional arguments for ``fn``.
        policy: Retry budget (defaults to RetryPolicy()).
        sleep: Awaitable sleep taking seconds; tests inject a recorder.
        label: Name used in log lines.
        **kwargs: Keyword arguments for ``fn``.

    Returns:
        Whatever ``fn`` returns on its first successful attempt.

    Raises:
        Exception: The last error, once retries are exhausted or on the
            first fatal error.
    """
    policy = policy or RetryPolicy()
    attempt = 0

    while True:
        try:
            return await fn(*args, **kwargs)
        except Exception as e:
            if not is_retryable(e):
                logger.debug("%s failed with fatal %s", label, type(e).__name__)
                raise
            if attempt >= policy.max_retries:
                logger.warning(
                    "%s failed after %d attempt(s): %s", label, attempt + 1, e,
                )
                raise

            delay_ms = policy.backoff_ms(attempt)
            logger.warning(
                "%s: %s (attempt %d/%d), retrying in %dms",
                label, type(e).__name__, attempt + 1, policy.max_attempts, delay_ms,
            )
            await sleep(delay_ms / 1000)
            attempt += 1
