# Copyright (c) 2026 CartSync Contributors. All Rights Reserved.

"""
App Context — Holds the single instances wired at startup.

Initialized in the FastAPI lifespan, read by API routes via Depends.
"""

from __future__ import annotations

from typing import Optional

from cartsync.backend.applier import OperationApplier
from cartsync.backend.client import RestDataStore
from cartsync.core.config import CartSyncSettings
from cartsync.kernel.clock import Clock, SystemClock
from cartsync.kernel.connectivity import ConnectivityMonitor
from cartsync.offline.queue import OfflineQueue
from cartsync.resilience.coordinator import RetryCoordinator
from cartsync.resilience.retry import RetryPolicy
from cartsync.storage.kv import KeyValueStore


class AppContext:
    """
    Runtime references for the service.
    Created once at startup, used by all API handlers.
    """

    def __init__(
        self,
        settings: CartSyncSettings,
        storage: KeyValueStore,
        *,
        store: Optional[RestDataStore] = None,
        clock: Optional[Clock] = None,
        connectivity: Optional[ConnectivityMonitor] = None,
    ) -> None:
        self.settings = settings
        self.storage = storage
        self.clock = clock or SystemClock()
        self.connectivity = connectivity or ConnectivityMonitor()
        self.store = store or RestDataStore(
            settings.BACKEND_URL,
            settings.BACKEND_API_KEY,
            timeout=settings.BACKEND_TIMEOUT,
        )
        self.applier = OperationApplier(self.store)

        policy = RetryPolicy.from_settings(settings)
        self.queue = OfflineQueue(
            storage,
            self.applier,
            clock=self.clock,
            connectivity=self.connectivity,
            policy=policy.merged(max_retries=settings.OFFLINE_MAX_RETRIES),
            key=settings.OFFLINE_QUEUE_KEY,
            drain_interval=settings.DRAIN_INTERVAL,
        )
        self.coordinator = RetryCoordinator(self.queue, policy)

    async def close(self) -> None:
        await self.coordinator.shutdown()
        await self.store.close()


# ── Global singleton ────────────────────────────────────────

_ctx: Optional[AppContext] = None


def init_app_context(
    settings: CartSyncSettings,
    storage: KeyValueStore,
    **kwargs,
) -> AppContext:
    global _ctx
    _ctx = AppContext(settings, storage, **kwargs)
    return _ctx


def get_app_context() -> AppContext:
    if _ctx is None:
        raise RuntimeError("AppContext not initialized. Call init_app_context() first.")
    return _ctx


def reset_app_context() -> None:
    global _ctx
    _ctx = None
