# Copyright (c) 2026 CartSync Contributors. All Rights Reserved.

"""
Observability API — Health check and metrics.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from cartsync import __version__
from cartsync.api.deps import get_context
from cartsync.core.context import AppContext
from cartsync.core.metrics import platform_metrics

router = APIRouter(tags=["observability"])


@router.get("/health")
async def health_check(ctx: AppContext = Depends(get_context)):
    return {
        "status": "ok",
        "version": __version__,
        "online": ctx.connectivity.is_online(),
        "storage": ctx.settings.STORAGE_BACKEND,
        "queue_size": len(ctx.queue),
        "failed_by_target": platform_metrics.by_label("offline:failed"),
        "processing": ctx.queue.processing,
        "metrics": platform_metrics.snapshot(),
    }


@router.get("/api/metrics")
async def get_metrics():
    return platform_metrics.snapshot()
