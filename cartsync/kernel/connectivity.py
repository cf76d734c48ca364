# Copyright (c) 2026 CartSync Contributors. All Rights Reserved.

"""
Connectivity — "is online" state plus became-online / became-offline hooks.

``ConnectivityMonitor`` is the signal the offline queue consults before
draining. It is fed either manually (``set_online``, e.g. from the API) or
by ``HttpConnectivityProbe`` which polls a URL.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, List, Optional

import httpx

from cartsync.kernel.clock import PeriodicTask

logger = logging.getLogger("cartsync.connectivity")

Listener = Callable[[], Any]


class ConnectivityMonitor:
    """Holds the online flag and notifies listeners on transitions."""

    def __init__(self, online: bool = True) -> None:
        self._online = online
        self._on_online: List[Listener] = []
        self._on_offline: List[Listener] = []

    def is_online(self) -> bool:
        return self._online

    def add_listeners(
        self,
        on_online: Optional[Listener] = None,
        on_offline: Optional[Listener] = None,
    ) -> Callable[[], None]:
        """
        Register transition listeners (sync or async callables).

        Returns a function that unregisters exactly these listeners.
        """
        if on_online is not None:
            self._on_online.append(on_online)
        if on_offline is not None:
            self._on_offline.append(on_offline)

        def remove() -> None:
            if on_online is not None and on_online in self._on_online:
                self._on_online.remove(on_online)
            if on_offline is not None and on_offline in self._on_offline:
                self._on_offline.remove(on_offline)

        return remove

    @property
    def listener_count(self) -> int:
        return len(self._on_online) + len(self._on_offline)

    async def set_online(self, online: bool) -> None:
        """Update the flag; fire listeners only when the value changes."""
        if online == self._online:
            return
        self._online = online
        if online:
            logger.info("Connection restored")
            listeners = list(self._on_online)
        else:
            logger.warning("Connection lost")
            listeners = list(self._on_offline)

        for listener in listeners:
            try:
                result = listener()
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Connectivity listener failed (online=%s)", online)


class HttpConnectivityProbe:
    """
    Polls ``url`` and pushes the outcome into a ConnectivityMonitor.

    Any HTTP response below 500 counts as online; transport errors and
    5xx responses count as offline.
    """

    def __init__(
        self,
        monitor: ConnectivityMonitor,
        url: str,
        interval: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 5.0,
    ) -> None:
        self._monitor = monitor
        self._url = url
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None
        self._task = PeriodicTask(self.check, interval, name="connectivity-probe")

    @property
    def running(self) -> bool:
        return self._task.running

    async def check(self) -> bool:
        try:
            resp = await self._client.get(self._url)
            online = resp.status_code < 500
        except httpx.HTTPError as exc:
            logger.debug("Connectivity probe failed: %s", exc)
            online = False
        await self._monitor.set_online(online)
        return online

    def start(self) -> None:
        self._task.start()

    async def stop(self) -> None:
        await self._task.stop()
        if self._owns_client:
            await self._client.aclose()
