# Copyright (c) 2026 CartSync Contributors. All Rights Reserved.

"""
Retry Policy & with_retry — Bounded retry with backoff.

``with_retry`` runs an async operation, classifies each failure as
retryable or fatal, and waits between attempts according to the policy's
backoff strategy. At most ``1 + max_retries`` invocations happen, and the
caller always sees exactly one outcome: the result, or the last error.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar

from cartsync.core.metrics import platform_metrics

logger = logging.getLogger("cartsync.retry")

T = TypeVar("T")

RETRYABLE_STATUSES = frozenset({408, 429, 500, 502, 503, 504})
_RETRYABLE_MARKERS = ("network", "timeout", "connection", "offline")


class RetryStrategy(str, Enum):
    FIXED = "fixed"
    EXPONENTIAL = "exponential"
    RANDOM = "random"


def _status_of(error: Any) -> Optional[int]:
    if isinstance(error, dict):
        status = error.get("status")
    else:
        status = getattr(error, "status", None)
        if status is None:
            status = getattr(error, "status_code", None)
        if status is None:
            response = getattr(error, "response", None)
            status = getattr(response, "status_code", None)
    if isinstance(status, bool):
        return None
    return status if isinstance(status, int) else None


def default_is_retryable(error: Any) -> bool:
    """
    Classify an error as transient.

    Retryable when the message (plain string or exception text) mentions
    network / timeout / connection / offline, case-insensitively, or when
    an HTTP-style status is one of 408, 429, 500, 502, 503, 504.
    """
    if isinstance(error, str):
        message = error
    elif isinstance(error, BaseException):
        message = str(error)
    else:
        message = ""

    lowered = message.lower()
    if any(marker in lowered for marker in _RETRYABLE_MARKERS):
        return True

    return _status_of(error) in RETRYABLE_STATUSES


@dataclass(frozen=True)
class RetryPolicy:
    """Configuration for one ``with_retry`` call."""
    max_retries: int = 3
    base_delay_ms: float = 1000
    max_delay_ms: float = 30000
    strategy: RetryStrategy = RetryStrategy.EXPONENTIAL
    factor: float = 2.0
    is_retryable: Callable[[Any], bool] = default_is_retryable
    on_retry: Optional[Callable[[int, float, Any], None]] = None
    on_fail: Optional[Callable[[Any, int], None]] = None

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_delay_ms <= 0 or self.max_delay_ms <= 0:
            raise ValueError("delays must be positive")
        if self.factor <= 0:
            raise ValueError("factor must be positive")
        if not isinstance(self.strategy, RetryStrategy):
            object.__setattr__(self, "strategy", RetryStrategy(self.strategy))

    def merged(self, **overrides: Any) -> RetryPolicy:
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if not changes:
            return self
        return dataclasses.replace(self, **changes)

    def next_delay(self, attempt: int, rng: Optional[random.Random] = None) -> float:
        return compute_delay(attempt, self, rng=rng)

    @classmethod
    def from_settings(cls, settings: Any, **overrides: Any) -> RetryPolicy:
        """Build the service default policy from CartSyncSettings."""
        policy = cls(
            max_retries=settings.RETRY_MAX_RETRIES,
            base_delay_ms=settings.RETRY_BASE_DELAY_MS,
            max_delay_ms=settings.RETRY_MAX_DELAY_MS,
            strategy=RetryStrategy(settings.RETRY_STRATEGY.lower()),
            factor=settings.RETRY_FACTOR,
        )
        return policy.merged(**overrides)


# Default policy
DEFAULT_RETRY_POLICY = RetryPolicy()


def compute_delay(
    attempt: int,
    policy: RetryPolicy,
    *,
    rng: Optional[random.Random] = None,
) -> float:
    """
    Delay in ms before retry number ``attempt`` (1-indexed).

    FIXED is the base delay, EXPONENTIAL grows by ``factor`` per retry and
    RANDOM samples uniformly between the base and the exponential value.
    Every result is clamped to ``max_delay_ms``.
    """
    if attempt < 1:
        raise ValueError(f"attempt must be >= 1, got {attempt}")

    base = policy.base_delay_ms
    if policy.strategy is RetryStrategy.FIXED:
        delay = base
    elif policy.strategy is RetryStrategy.EXPONENTIAL:
        delay = base * (policy.factor ** (attempt - 1))
    else:
        upper = base * (policy.factor ** (attempt - 1))
        delay = (rng or random).uniform(base, upper)

    return min(delay, policy.max_delay_ms)


def _notify(name: str, callback: Optional[Callable[..., Any]], *args: Any) -> None:
    if callback is None:
        return
    try:
        callback(*args)
    except Exception:
        logger.exception("Retry observer %s raised; ignoring", name)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: Optional[RetryPolicy] = None,
    *,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    rng: Optional[random.Random] = None,
    **overrides: Any,
) -> T:
    """
    Run ``operation`` with bounded retry.

    Args:
        operation: Zero-argument coroutine function.
        policy: Base policy (defaults to DEFAULT_RETRY_POLICY).
        sleep: Awaitable sleep taking seconds; injectable for tests.
        rng: Random source for the RANDOM strategy.
        **overrides: RetryPolicy fields merged over ``policy``.

    Raises:
        The last error raised by ``operation`` when it is fatal or when
        retries are exhausted.
    """
    opts = (policy or DEFAULT_RETRY_POLICY).merged(**overrides)
    attempt = 0

    while True:
        platform_metrics.inc("retry:invocations")
        try:
            return await operation()
        except Exception as error:
            attempt += 1

            if not opts.is_retryable(error):
                platform_metrics.inc("retry:fatal")
                logger.warning("Non-retryable error on attempt %d: %s", attempt, error)
                raise

            if attempt > opts.max_retries:
                platform_metrics.inc("retry:exhausted")
                logger.error("Max retries reached after %d attempts: %s", attempt, error)
                _notify("on_fail", opts.on_fail, error, attempt)
                raise

            delay = compute_delay(attempt, opts, rng=rng)
            platform_metrics.inc("retry:retried")
            platform_metrics.observe("retry_delay_ms", delay)
            logger.info("Retry %d/%d in %.0fms after: %s", attempt, opts.max_retries, delay, error)
            _notify("on_retry", opts.on_retry, attempt, delay, error)
            await sleep(delay / 1000.0)
