# Copyright (c) 2026 CartSync Contributors. All Rights Reserved.

"""
Offline Queue API — Inspect, enqueue, remove and drain offline operations.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from cartsync.api.deps import get_context, get_queue
from cartsync.api.errors import OperationNotFoundError
from cartsync.core.context import AppContext
from cartsync.offline.models import OfflineOperation, OperationType
from cartsync.offline.queue import OfflineQueue

logger = logging.getLogger("cartsync.api.offline")

router = APIRouter(tags=["offline"])


class EnqueueRequest(BaseModel):
    type: OperationType
    target: str = Field(..., min_length=1)
    data: Any = None


class ConnectivityRequest(BaseModel):
    online: bool


@router.get("/offline-operations", response_model=List[OfflineOperation])
async def list_operations(queue: OfflineQueue = Depends(get_queue)):
    return queue.get_all()


@router.post("/offline-operations", status_code=201)
async def enqueue_operation(
    body: EnqueueRequest,
    queue: OfflineQueue = Depends(get_queue),
) -> Dict[str, str]:
    op_id = await queue.add(body.type, body.target, body.data)
    return {"id": op_id}


@router.post("/offline-operations/drain")
async def drain_now(queue: OfflineQueue = Depends(get_queue)) -> Dict[str, Any]:
    report = await queue.drain()
    return {**report.to_dict(), "remaining": len(queue)}


@router.get("/offline-operations/{op_id}", response_model=OfflineOperation)
async def get_operation(
    op_id: str,
    request: Request,
    queue: OfflineQueue = Depends(get_queue),
):
    operation = queue.get(op_id)
    if operation is None:
        raise OperationNotFoundError(op_id, getattr(request.state, "trace_id", None))
    return operation


@router.delete("/offline-operations/{op_id}")
async def delete_operation(
    op_id: str,
    request: Request,
    queue: OfflineQueue = Depends(get_queue),
) -> Dict[str, Any]:
    if not await queue.remove(op_id):
        raise OperationNotFoundError(op_id, getattr(request.state, "trace_id", None))
    return {"id": op_id, "removed": True}


@router.put("/connectivity")
async def set_connectivity(
    body: ConnectivityRequest,
    ctx: AppContext = Depends(get_context),
) -> Dict[str, bool]:
    """Manual connectivity signal; going online triggers a drain."""
    await ctx.connectivity.set_online(body.online)
    return {"online": ctx.connectivity.is_online()}
