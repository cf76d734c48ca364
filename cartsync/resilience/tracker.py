# Copyright (c) 2026 CartSync Contributors. All Rights Reserved.

"""
RetryTracker — Observable state around a retried call.

Keeps ``loading`` / ``data`` / ``error`` / ``attempts`` for the most recent
``execute`` so a status endpoint or UI adapter can show progress.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from cartsync.resilience.retry import DEFAULT_RETRY_POLICY, RetryPolicy, with_retry

logger = logging.getLogger("cartsync.tracker")

T = TypeVar("T")


class RetryTracker(Generic[T]):

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        *,
        on_start: Optional[Callable[[], None]] = None,
        on_success: Optional[Callable[[T], None]] = None,
        on_error: Optional[Callable[[Any], None]] = None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ) -> None:
        self._policy = policy or DEFAULT_RETRY_POLICY
        self._on_start = on_start
        self._on_success = on_success
        self._on_error = on_error
        self._sleep = sleep

        self.loading: bool = False
        self.data: Optional[T] = None
        self.error: Any = None
        self.attempts: int = 0

    def _record_retry(self, attempt: int, delay: float, error: Any) -> None:
        self.attempts = attempt
        if self._policy.on_retry:
            self._policy.on_retry(attempt, delay, error)

    def _record_fail(self, error: Any, attempts: int) -> None:
        if self._policy.on_fail:
            self._policy.on_fail(error, attempts)
        if self._on_error:
            self._on_error(error)

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run ``operation`` with retry, updating state as it goes."""
        self.loading = True
        self.error = None
        self.attempts = 0
        if self._on_start:
            self._on_start()

        extra = {"sleep": self._sleep} if self._sleep is not None else {}
        try:
            result = await with_retry(
                operation,
                self._policy,
                on_retry=self._record_retry,
                on_fail=self._record_fail,
                **extra,
            )
        except Exception as exc:
            self.error = exc
            self.loading = False
            raise

        self.data = result
        self.loading = False
        if self._on_success:
            self._on_success(result)
        return result
