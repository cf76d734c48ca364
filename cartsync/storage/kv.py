# Copyright (c) 2026 CartSync Contributors. All Rights Reserved.

"""
Key/Value Stores — Durable string storage for the offline queue.

The queue only needs ``get`` / ``set`` of one JSON document, so any store
satisfying ``KeyValueStore`` works. Redis is used in production; the
in-memory store backs tests and the ``STORAGE_BACKEND=memory`` mode.
"""

from __future__ import annotations

from typing import Dict, Optional, Protocol

import redis.asyncio as aioredis

from cartsync.kernel.namespace import get_key


class KeyValueStore(Protocol):
    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...


class RedisKeyValueStore:
    """Namespaced string store backed by Redis."""

    def __init__(self, redis: aioredis.Redis, namespace: str = "default") -> None:
        self._redis = redis
        self._namespace = namespace

    def _key(self, key: str) -> str:
        return get_key(self._namespace, key)

    async def get(self, key: str) -> Optional[str]:
        value = await self._redis.get(self._key(key))
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def set(self, key: str, value: str) -> None:
        await self._redis.set(self._key(key), value)

    async def delete(self, key: str) -> None:
        await self._redis.delete(self._key(key))


class InMemoryKeyValueStore:
    """Process-local store (for testing and single-process dev runs)."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)
