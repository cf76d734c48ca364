# Copyright (c) 2026 CartSync Contributors. All Rights Reserved.

"""
API Dependencies — FastAPI dependency injection.
"""

from __future__ import annotations

from cartsync.core.context import AppContext, get_app_context
from cartsync.offline.queue import OfflineQueue


async def get_context() -> AppContext:
    return get_app_context()


async def get_queue() -> OfflineQueue:
    return get_app_context().queue
