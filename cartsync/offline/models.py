# Copyright (c) 2026 CartSync Contributors. All Rights Reserved.

"""
Offline Operation Schema — A queued mutation waiting to reach the backend.

Serialized as a JSON list under one storage key. ``id`` and ``timestamp``
never change after creation; ``attempts``, ``next_retry`` and ``status``
are updated by the drain.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Any, List, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


class OperationType(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    CUSTOM = "custom"


class OperationStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    FAILED = "failed"
    SUCCESS = "success"


def _to_base36(value: int) -> str:
    if value <= 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def new_operation_id(now_ms: int) -> str:
    """Time-based id with a random suffix, e.g. ``lx3k9a2f4c1d9e0b7a``."""
    return _to_base36(now_ms) + uuid.uuid4().hex[:12]


class OfflineOperation(BaseModel):
    """A pending mutation intent persisted for later replay."""

    id: str = Field(..., min_length=1)
    type: OperationType
    target: str = Field(..., min_length=1, description="Table or custom handler name")
    data: Any = None
    timestamp: int = Field(..., ge=0, description="Creation time, epoch ms")
    attempts: int = Field(default=0, ge=0)
    next_retry: int = Field(..., ge=0, description="Not attempted before this epoch ms")
    status: OperationStatus = OperationStatus.PENDING

    @classmethod
    def create(
        cls,
        type: Union[OperationType, str],
        target: str,
        data: Any,
        now_ms: int,
        op_id: Optional[str] = None,
    ) -> OfflineOperation:
        """Factory for a fresh pending operation."""
        return cls(
            id=op_id or new_operation_id(now_ms),
            type=OperationType(type),
            target=target,
            data=data,
            timestamp=now_ms,
            attempts=0,
            next_retry=now_ms,
            status=OperationStatus.PENDING,
        )

    def is_due(self, now_ms: int) -> bool:
        """Eligible for a drain pass: pending or failed, and its retry time has come."""
        return (
            self.status in (OperationStatus.PENDING, OperationStatus.FAILED)
            and self.next_retry <= now_ms
        )


_OPERATION_LIST = TypeAdapter(List[OfflineOperation])


def dump_operations(operations: List[OfflineOperation]) -> str:
    """Serialize a collection to the JSON document kept in storage."""
    return _OPERATION_LIST.dump_json(operations).decode("utf-8")


def load_operations(raw: str) -> List[OfflineOperation]:
    """Parse the stored JSON document. Raises on malformed input."""
    return _OPERATION_LIST.validate_json(raw)
