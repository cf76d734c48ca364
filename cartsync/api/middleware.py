# Copyright (c) 2026 CartSync Contributors. All Rights Reserved.

"""
API Middleware — Trace ID propagation, request timing and API counters.
"""

from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from cartsync.core.metrics import platform_metrics

logger = logging.getLogger("cartsync.api")


class TraceMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with an X-Trace-Id (propagated or generated).

    Counts requests as ``api:requests`` and 4xx/5xx responses as
    ``api:errors``, and records latency in the ``api_latency_ms`` histogram.
    """

    async def dispatch(self, request: Request, call_next):
        trace_id = request.headers.get("X-Trace-Id") or str(uuid.uuid4())
        request.state.trace_id = trace_id

        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed = (time.perf_counter() - start) * 1000

        response.headers["X-Trace-Id"] = trace_id
        platform_metrics.inc("api:requests")
        if response.status_code >= 400:
            platform_metrics.inc("api:errors")
        platform_metrics.observe("api_latency_ms", elapsed)

        logger.info(
            "%s %s -> %d (%.0fms)",
            request.method, request.url.path, response.status_code, elapsed,
            extra={"trace_id": trace_id, "status_code": response.status_code},
        )
        return response
