# Copyright (c) 2026 CartSync Contributors. All Rights Reserved.

"""
Clock & PeriodicTask — Time source and cancellable recurring work.

``Clock`` is the wall-clock seam used for operation timestamps and
``next_retry`` scheduling; tests swap in a fake with manual ``advance``.
``PeriodicTask`` drives the offline queue drain and the connectivity probe.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Coroutine, Optional, Protocol

logger = logging.getLogger("cartsync.clock")


class Clock(Protocol):
    def now_ms(self) -> int:
        """Current time as epoch milliseconds."""
        ...


class SystemClock:
    """Clock backed by ``time.time()``."""

    def now_ms(self) -> int:
        return int(time.time() * 1000)


class PeriodicTask:
    """
    Runs an async callback every ``interval`` seconds on the event loop.

    Callback failures are logged and the loop keeps going. ``start`` and
    ``stop`` are both idempotent.
    """

    def __init__(
        self,
        callback: Callable[[], Coroutine[Any, Any, Any]],
        interval: float,
        *,
        name: str = "periodic",
        run_immediately: bool = True,
    ) -> None:
        """
        Args:
            callback: Coroutine function invoked on every run.
            interval: Seconds between runs.
            name: Label used in log lines.
            run_immediately: Run once right away instead of after the first interval.
        """
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._callback = callback
        self._interval = interval
        self._name = name
        self._run_immediately = run_immediately
        self._runs: int = 0
        self._running: bool = False
        self._task: Optional[asyncio.Task] = None

    @property
    def runs(self) -> int:
        """Number of completed callback invocations."""
        return self._runs

    @property
    def running(self) -> bool:
        return self._running

    @property
    def interval(self) -> float:
        return self._interval

    def start(self) -> None:
        """Schedule the loop on the running event loop."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.get_running_loop().create_task(self._loop())
        logger.info("%s started (interval=%.2fs)", self._name, self._interval)

    async def _loop(self) -> None:
        if not self._run_immediately:
            await asyncio.sleep(self._interval)
        while self._running:
            try:
                await self._callback()
            except Exception as exc:
                logger.error("%s callback error at run %d: %s", self._name, self._runs + 1, exc)
            self._runs += 1
            await asyncio.sleep(self._interval)

    async def stop(self) -> None:
        """Cancel the loop and wait for it to unwind."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("%s stopped after %d runs", self._name, self._runs)
