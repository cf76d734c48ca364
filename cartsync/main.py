# Copyright (c) 2026 CartSync Contributors. All Rights Reserved.

"""
CartSync Application Entry Point.

FastAPI app whose lifespan is the composition root: it builds the durable
store, the retry coordinator and offline queue, and the optional
connectivity probe, then tears them down on shutdown.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cartsync import __version__
from cartsync.api.errors import APIError, api_error_handler
from cartsync.api.middleware import TraceMiddleware
from cartsync.api.observability import router as observability_router
from cartsync.api.offline import router as offline_router
from cartsync.core.config import CartSyncSettings, settings
from cartsync.core.context import init_app_context, reset_app_context
from cartsync.core.logging import setup_logging
from cartsync.kernel.connectivity import HttpConnectivityProbe
from cartsync.kernel.redis_client import close_redis_pool, get_redis_pool
from cartsync.storage.kv import InMemoryKeyValueStore, KeyValueStore, RedisKeyValueStore

logger = logging.getLogger("cartsync.main")


async def build_storage(cfg: CartSyncSettings) -> KeyValueStore:
    """Pick the durable store named by STORAGE_BACKEND."""
    backend = cfg.STORAGE_BACKEND.lower()
    if backend == "memory":
        logger.warning("Using in-memory storage; offline operations will not survive restarts")
        return InMemoryKeyValueStore()
    if backend == "redis":
        redis = await get_redis_pool()
        return RedisKeyValueStore(redis, cfg.QUEUE_NAMESPACE)
    raise ValueError(f"Unknown STORAGE_BACKEND '{cfg.STORAGE_BACKEND}'")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage startup/shutdown of service resources."""
    setup_logging(settings.LOG_LEVEL)
    storage = await build_storage(settings)
    ctx = init_app_context(settings, storage)
    await ctx.coordinator.initialize()

    probe: Optional[HttpConnectivityProbe] = None
    if settings.CONNECTIVITY_PROBE_URL:
        probe = HttpConnectivityProbe(
            ctx.connectivity,
            settings.CONNECTIVITY_PROBE_URL,
            interval=settings.CONNECTIVITY_PROBE_INTERVAL,
        )
        probe.start()

    logger.info("[CartSync] Ready (%d offline operations queued)", len(ctx.queue))
    yield

    if probe is not None:
        await probe.stop()
    await ctx.close()
    reset_app_context()
    await close_redis_pool()
    logger.info("[CartSync] Shutdown complete")


app = FastAPI(
    title="CartSync",
    description="Retry and offline-operation sync for the shopping list backend",
    version=__version__,
    lifespan=lifespan,
)

# ── Middleware ───────────────────────────────────────────────
app.add_middleware(TraceMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Error Handlers ──────────────────────────────────────────
app.add_exception_handler(APIError, api_error_handler)

# ── Routes ──────────────────────────────────────────────────
app.include_router(offline_router, prefix="/api")
app.include_router(observability_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("cartsync.main:app", host="0.0.0.0", port=8000)
