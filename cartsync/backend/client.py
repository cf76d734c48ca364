# Copyright (c) 2026 CartSync Contributors. All Rights Reserved.

"""
RestDataStore — CRUD client for the hosted PostgREST-style data API.

Every call returns a ``Result`` instead of raising, mirroring the
``{data, error}`` contract the rest of the app expects. HTTP failures keep
their status code; transport failures are reported as network errors so
the retry classifier treats them as transient.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

import httpx

from cartsync.backend.result import Result
from cartsync.core.errors import BackendError

logger = logging.getLogger("cartsync.backend")

Rows = List[Dict[str, Any]]


def _encode_filters(filters: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """Equality filters in PostgREST syntax: {"id": 5} -> {"id": "eq.5"}."""
    params: Dict[str, str] = {}
    for column, value in (filters or {}).items():
        if value is None:
            params[column] = "is.null"
        elif isinstance(value, bool):
            params[column] = f"eq.{str(value).lower()}"
        else:
            params[column] = f"eq.{value}"
    return params


class RestDataStore:
    """
    Data API client.

    Usage:
        store = RestDataStore("https://xyz.example.co/rest/v1", api_key="...")
        result = await store.select("shopping_lists", order="created_at.desc")
        lists = result.unwrap()
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        *,
        access_token: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["apikey"] = api_key
        token = access_token or api_key
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._base_url = base_url.rstrip("/")
        self._headers = headers
        # An injected client is shared: auth goes on each request, not on the client.
        self._client = client or httpx.AsyncClient(base_url=self._base_url, timeout=timeout)
        self._owns_client = client is None

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: Optional[Dict[str, str]] = None,
        json: Any = None,
        prefer: Optional[str] = None,
    ) -> Result[Rows]:
        headers = dict(self._headers)
        if prefer:
            headers["Prefer"] = prefer
        try:
            resp = await self._client.request(
                method, f"/{table}", params=params, json=json, headers=headers,
            )
        except httpx.TimeoutException as exc:
            logger.warning("Backend %s %s timed out: %s", method, table, exc)
            return Result.failure(BackendError(f"timeout: {exc}"))
        except httpx.TransportError as exc:
            logger.warning("Backend %s %s network failure: %s", method, table, exc)
            return Result.failure(BackendError(f"network error: {exc}"))

        if resp.status_code >= 400:
            return Result.failure(self._error_from_response(resp))

        if not resp.content:
            return Result.success([])
        body = resp.json()
        return Result.success(body if isinstance(body, list) else [body])

    @staticmethod
    def _error_from_response(resp: httpx.Response) -> BackendError:
        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        message = body.get("message") or resp.reason_phrase or f"HTTP {resp.status_code}"
        return BackendError(
            message,
            status=resp.status_code,
            code=body.get("code"),
            details={k: v for k, v in body.items() if k in ("details", "hint")},
        )

    # ── CRUD ──────────────────────────────────────────────────

    async def select(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        *,
        columns: str = "*",
        order: Optional[str] = None,
    ) -> Result[Rows]:
        params = {"select": columns, **_encode_filters(filters)}
        if order:
            params["order"] = order
        return await self._request("GET", table, params=params)

    async def insert(self, table: str, rows: Union[Dict[str, Any], Rows]) -> Result[Rows]:
        payload = rows if isinstance(rows, list) else [rows]
        return await self._request(
            "POST", table, json=payload, prefer="return=representation",
        )

    async def update(
        self,
        table: str,
        values: Dict[str, Any],
        filters: Dict[str, Any],
    ) -> Result[Rows]:
        if not filters:
            return Result.failure(BackendError("update requires at least one filter", code="NO_FILTER"))
        return await self._request(
            "PATCH", table,
            params=_encode_filters(filters),
            json=values,
            prefer="return=representation",
        )

    async def delete(self, table: str, filters: Dict[str, Any]) -> Result[Rows]:
        if not filters:
            return Result.failure(BackendError("delete requires at least one filter", code="NO_FILTER"))
        return await self._request(
            "DELETE", table,
            params=_encode_filters(filters),
            prefer="return=representation",
        )

    # ── Lifecycle ─────────────────────────────────────────────

    async def health_check(self) -> bool:
        try:
            resp = await self._client.get("/", headers=self._headers)
            return resp.status_code < 500
        except httpx.HTTPError:
            return False

    async def close(self) -> None:
        """Close the HTTP client if this store created it."""
        if self._owns_client:
            await self._client.aclose()
