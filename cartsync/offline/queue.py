# Copyright (c) 2026 CartSync Contributors. All Rights Reserved.

"""
OfflineQueue — Durable store of mutations that could not be applied yet.

The in-memory list is authoritative; after every mutation the whole list
is re-serialized to the key/value store so storage never lags behind
memory by more than one step.

Drain passes run on a periodic timer, right after processing starts, and
whenever connectivity is restored. Only one pass runs at a time. Records
in a pass are applied one after another.

Failed records are retried indefinitely with growing backoff (clamped to
the policy's max delay). They leave the queue only on success or when a
caller removes them.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Union

from cartsync.core.metrics import Metrics, platform_metrics
from cartsync.kernel.clock import Clock, PeriodicTask, SystemClock
from cartsync.kernel.connectivity import ConnectivityMonitor
from cartsync.offline.models import (
    OfflineOperation,
    OperationStatus,
    OperationType,
    dump_operations,
    load_operations,
    new_operation_id,
)
from cartsync.resilience.retry import DEFAULT_RETRY_POLICY, RetryPolicy, compute_delay
from cartsync.storage.kv import KeyValueStore

logger = logging.getLogger("cartsync.offline_queue")

OFFLINE_QUEUE_KEY = "offlineOperations"
DEFAULT_DRAIN_INTERVAL = 60.0
DEFAULT_OFFLINE_POLICY = DEFAULT_RETRY_POLICY.merged(max_retries=10)

ApplyFn = Callable[[OfflineOperation], Awaitable[Any]]


@dataclass
class DrainReport:
    """Outcome of one drain pass."""
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: bool = False

    def to_dict(self) -> dict:
        return {
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
        }


class OfflineQueue:
    """
    Persisted queue of OfflineOperation records plus the drain loop.

    ``apply`` is the caller-defined step that pushes one record to the
    backend; it signals failure by raising.
    """

    def __init__(
        self,
        storage: KeyValueStore,
        apply: ApplyFn,
        *,
        clock: Optional[Clock] = None,
        connectivity: Optional[ConnectivityMonitor] = None,
        policy: Optional[RetryPolicy] = None,
        key: str = OFFLINE_QUEUE_KEY,
        drain_interval: float = DEFAULT_DRAIN_INTERVAL,
        metrics: Optional[Metrics] = None,
        autostart: bool = True,
    ) -> None:
        """
        Args:
            storage: Durable key/value store for the serialized list.
            apply: Coroutine function applying one operation.
            clock: Time source (epoch ms).
            connectivity: Online signal; drains are skipped while offline.
            policy: Backoff used to reschedule failed records.
            key: Storage key of the serialized list.
            drain_interval: Seconds between periodic drains.
            metrics: Metrics sink.
            autostart: Start periodic processing on the first ``add``.
        """
        self._storage = storage
        self._apply = apply
        self._clock = clock or SystemClock()
        self._connectivity = connectivity or ConnectivityMonitor()
        self._policy = policy or DEFAULT_OFFLINE_POLICY
        self._key = key
        self._metrics = metrics or platform_metrics
        self._autostart = autostart
        self._operations: List[OfflineOperation] = []
        self._draining = False
        self._task = PeriodicTask(self.drain, drain_interval, name="offline-drain")
        self._remove_listeners: Optional[Callable[[], None]] = None

    # ── Inspection ──────────────────────────────────────────────

    @property
    def connectivity(self) -> ConnectivityMonitor:
        return self._connectivity

    @property
    def processing(self) -> bool:
        """True while the periodic drain loop is active."""
        return self._task.running

    @property
    def draining(self) -> bool:
        """True while a drain pass is in progress."""
        return self._draining

    def __len__(self) -> int:
        return len(self._operations)

    def get_all(self) -> List[OfflineOperation]:
        """Snapshot of the collection; mutating it does not touch the queue."""
        return [op.model_copy(deep=True) for op in self._operations]

    def get(self, op_id: str) -> Optional[OfflineOperation]:
        for op in self._operations:
            if op.id == op_id:
                return op.model_copy(deep=True)
        return None

    # ── Mutations ───────────────────────────────────────────────

    async def add(self, type: Union[OperationType, str], target: str, data: Any = None) -> str:
        """Queue a new pending operation and return its id."""
        now = self._clock.now_ms()
        op_id = new_operation_id(now)
        while any(op.id == op_id for op in self._operations):
            op_id = new_operation_id(now)

        operation = OfflineOperation.create(type, target, data, now, op_id=op_id)
        self._operations.append(operation)
        await self._save()

        self._metrics.inc("offline:added")
        logger.info(
            "Queued offline %s on %s", operation.type.value, target,
            extra={"operation_id": op_id, "target": target},
        )
        if self._autostart:
            self.start()
        return op_id

    async def remove(self, op_id: str) -> bool:
        """Drop an operation. Returns False when no record matched."""
        before = len(self._operations)
        self._operations = [op for op in self._operations if op.id != op_id]
        removed = len(self._operations) != before
        await self._save()
        if removed:
            self._metrics.inc("offline:removed")
        return removed

    # ── Persistence ─────────────────────────────────────────────

    async def _save(self) -> None:
        self._metrics.set_gauge("offline:queue_size", len(self._operations))
        try:
            await self._storage.set(self._key, dump_operations(self._operations))
        except Exception:
            self._metrics.inc("offline:save_errors")
            logger.exception("Failed to save offline operations")

    async def load(self) -> None:
        """Replace the in-memory list with the stored one; never raises."""
        try:
            raw = await self._storage.get(self._key)
            operations = load_operations(raw) if raw else []
        except Exception:
            self._metrics.inc("offline:load_errors")
            logger.exception("Failed to load offline operations; starting empty")
            operations = []

        for op in operations:
            if op.status is OperationStatus.PROCESSING:
                op.status = OperationStatus.PENDING
        self._operations = operations
        self._metrics.set_gauge("offline:queue_size", len(operations))
        logger.info("Loaded %d offline operations", len(operations))

    # ── Drain ───────────────────────────────────────────────────

    async def drain(self) -> DrainReport:
        """
        Apply every due record once, sequentially.

        Records removed while the pass is running are skipped.
        """
        if self._draining or not self._connectivity.is_online():
            return DrainReport(skipped=True)

        self._draining = True
        report = DrainReport()
        try:
            now = self._clock.now_ms()
            due = [op for op in self._operations if op.is_due(now)]
            for operation in due:
                if not any(op is operation for op in self._operations):
                    continue
                report.attempted += 1
                if await self._process(operation, now):
                    report.succeeded += 1
                else:
                    report.failed += 1
        finally:
            self._draining = False

        if report.attempted:
            logger.info(
                "Drain finished: %d attempted, %d succeeded, %d failed",
                report.attempted, report.succeeded, report.failed,
            )
        return report

    async def _process(self, operation: OfflineOperation, now: int) -> bool:
        extra = {"operation_id": operation.id, "target": operation.target}

        operation.status = OperationStatus.PROCESSING
        operation.attempts += 1
        await self._save()

        started = time.perf_counter()
        try:
            await self._apply(operation)
        except Exception as exc:
            # Whole ms and at least 1, so next_retry is always past the drain start.
            delay_ms = max(1, math.ceil(compute_delay(operation.attempts, self._policy)))
            operation.status = OperationStatus.FAILED
            operation.next_retry = now + delay_ms
            await self._save()
            self._metrics.inc("offline:failed")
            self._metrics.inc(f"offline:failed:{operation.target}")
            logger.error(
                "Offline operation failed (attempt %d, next retry in %dms): %s",
                operation.attempts, delay_ms, exc,
                extra={**extra, "attempt": operation.attempts, "delay_ms": delay_ms},
            )
            return False
        finally:
            self._metrics.observe("offline_apply_ms", (time.perf_counter() - started) * 1000)

        operation.status = OperationStatus.SUCCESS
        await self._save()
        await self.remove(operation.id)
        self._metrics.inc("offline:applied")
        self._metrics.inc(f"offline:applied:{operation.target}")
        logger.info("Offline operation applied", extra={**extra, "attempt": operation.attempts})
        return True

    # ── Lifecycle ───────────────────────────────────────────────

    def start(self) -> None:
        """Begin periodic draining (first pass runs immediately)."""
        self._task.start()

    async def stop(self) -> None:
        await self._task.stop()

    def register_connection_listeners(self) -> Callable[[], None]:
        """Drain as soon as connectivity comes back."""
        if self._remove_listeners is None:
            self._remove_listeners = self._connectivity.add_listeners(
                on_online=self._on_online,
                on_offline=self._on_offline,
            )
        return self._remove_listeners

    async def _on_online(self) -> None:
        await self.drain()

    def _on_offline(self) -> None:
        logger.info("Offline; %d operations waiting", len(self._operations))

    async def initialize(self) -> None:
        """Load persisted records, hook connectivity, and start processing."""
        await self.load()
        self.register_connection_listeners()
        self.start()

    async def shutdown(self) -> None:
        await self.stop()
        if self._remove_listeners is not None:
            self._remove_listeners()
            self._remove_listeners = None
