# Copyright (c) 2026 CartSync Contributors. All Rights Reserved.

"""
OperationApplier — Replays an OfflineOperation against the data API.

This is the ``apply`` hook handed to the OfflineQueue. Payload shapes:

    create  data = {column: value, ...} or a list of rows
    update  data = {"match": {column: value}, "values": {column: value}}
    delete  data = {"match": {column: value}}
    custom  data passed untouched to the handler registered for ``target``
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, List

from cartsync.backend.client import RestDataStore
from cartsync.core.errors import UnknownOperationError
from cartsync.offline.models import OfflineOperation, OperationType

logger = logging.getLogger("cartsync.applier")

CustomHandler = Callable[[Any], Awaitable[Any]]


class OperationApplier:
    """Maps operation types onto CRUD calls; raises on any failure."""

    def __init__(self, store: RestDataStore) -> None:
        self._store = store
        self._handlers: Dict[str, CustomHandler] = {}

    def register(self, name: str, handler: CustomHandler) -> None:
        """Register the coroutine that applies ``custom`` operations targeting ``name``."""
        if name in self._handlers:
            logger.warning("Replacing custom handler '%s'", name)
        self._handlers[name] = handler

    @property
    def handlers(self) -> List[str]:
        return sorted(self._handlers)

    async def __call__(self, operation: OfflineOperation) -> Any:
        data = operation.data
        if operation.type is OperationType.CREATE:
            result = await self._store.insert(operation.target, data)
        elif operation.type is OperationType.UPDATE:
            payload = _require_mapping(operation, "match", "values")
            result = await self._store.update(operation.target, payload["values"], payload["match"])
        elif operation.type is OperationType.DELETE:
            payload = _require_mapping(operation, "match")
            result = await self._store.delete(operation.target, payload["match"])
        else:
            handler = self._handlers.get(operation.target)
            if handler is None:
                raise UnknownOperationError(f"No custom handler registered for '{operation.target}'")
            return await handler(data)

        return result.unwrap()


def _require_mapping(operation: OfflineOperation, *keys: str) -> Dict[str, Any]:
    data = operation.data
    if not isinstance(data, dict) or any(not isinstance(data.get(k), dict) for k in keys):
        raise UnknownOperationError(
            f"{operation.type.value} on '{operation.target}' needs object fields: {', '.join(keys)}"
        )
    return data
