# Copyright (c) 2026 CartSync Contributors. All Rights Reserved.

"""
RetryCoordinator — One object owning the retry policy and the offline queue.

Built once by the composition root and handed to whoever needs bounded
retry or offline queueing.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, List, Optional, Tuple, TypeVar, Union

from cartsync.offline.models import OfflineOperation, OperationType
from cartsync.offline.queue import OfflineQueue
from cartsync.resilience.retry import DEFAULT_RETRY_POLICY, RetryPolicy, with_retry

logger = logging.getLogger("cartsync.coordinator")

T = TypeVar("T")


class RetryCoordinator:
    """Retry execution plus offline-queue access behind a single handle."""

    def __init__(
        self,
        queue: OfflineQueue,
        policy: Optional[RetryPolicy] = None,
        *,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ) -> None:
        self._queue = queue
        self._policy = policy or DEFAULT_RETRY_POLICY
        self._sleep = sleep

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    @property
    def queue(self) -> OfflineQueue:
        return self._queue

    async def with_retry(self, operation: Callable[[], Awaitable[T]], **overrides: Any) -> T:
        """Run ``operation`` under the default policy merged with ``overrides``."""
        if self._sleep is not None:
            overrides.setdefault("sleep", self._sleep)
        return await with_retry(operation, self._policy, **overrides)

    async def run_or_enqueue(
        self,
        operation: Callable[[], Awaitable[T]],
        type: Union[OperationType, str],
        target: str,
        data: Any = None,
        **overrides: Any,
    ) -> Tuple[Optional[T], Optional[str]]:
        """
        Try ``operation`` now; park the mutation offline if it keeps failing.

        Returns ``(result, None)`` on success or ``(None, operation_id)`` when
        a transient failure outlasted the retries. Fatal errors propagate.
        """
        opts = self._policy.merged(
            **{k: v for k, v in overrides.items() if k not in ("sleep", "rng")}
        )
        try:
            return await self.with_retry(operation, **overrides), None
        except Exception as exc:
            if not opts.is_retryable(exc):
                raise
            op_id = await self._queue.add(type, target, data)
            logger.warning(
                "Deferred %s on %s to offline queue: %s", OperationType(type).value, target, exc,
                extra={"operation_id": op_id, "target": target},
            )
            return None, op_id

    # ── Offline queue delegation ────────────────────────────────

    async def add_offline_operation(
        self, type: Union[OperationType, str], target: str, data: Any = None,
    ) -> str:
        return await self._queue.add(type, target, data)

    def get_offline_operations(self) -> List[OfflineOperation]:
        return self._queue.get_all()

    async def remove_offline_operation(self, op_id: str) -> bool:
        return await self._queue.remove(op_id)

    async def load_offline_operations(self) -> None:
        await self._queue.load()

    async def initialize(self) -> None:
        await self._queue.initialize()

    async def shutdown(self) -> None:
        await self._queue.shutdown()
