# Copyright (c) 2026 CartSync Contributors. All Rights Reserved.

"""
Error taxonomy and helpers shared by the retry, queue and backend layers.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class CartSyncError(Exception):
    """Base class for CartSync errors."""


class BackendError(CartSyncError):
    """A failed call against the hosted data API."""

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status = status
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"BackendError({self.message!r}, status={self.status!r}, code={self.code!r})"


class UnknownOperationError(CartSyncError):
    """An offline operation names a type or custom handler nobody registered."""


# Known backend messages → user-facing text.
_FRIENDLY_MESSAGES = (
    ("Email not confirmed", "Email not confirmed. Check your inbox."),
    ("Invalid login credentials", "Invalid credentials. Check your email and password."),
    ("User already registered", "This email is already registered."),
    ("Password should be at least", "The password must be at least 6 characters long."),
    ("new row violates row-level security", "You do not have permission to perform this operation."),
    ("Failed to fetch", "Could not reach the server. Check your internet connection."),
)

_CONNECTION_MARKERS = (
    "failed to fetch",
    "networkerror",
    "network connection",
    "timeout",
    "socket",
    "connection",
)

_AUTH_MARKERS = (
    "authentication",
    "auth",
    "login",
    "token",
    "credentials",
    "permission",
    "unauthorized",
    "forbidden",
)


def error_message(error: Any) -> Optional[str]:
    """Best-effort message extraction from a string, exception, or mapping."""
    if error is None:
        return None
    if isinstance(error, str):
        return error
    if isinstance(error, dict):
        msg = error.get("message")
        return str(msg) if msg is not None else None
    msg = getattr(error, "message", None)
    if isinstance(msg, str):
        return msg
    if isinstance(error, BaseException):
        return str(error)
    return None


def _has_marker(error: Any, markers: tuple) -> bool:
    message = error_message(error)
    if not message:
        return False
    lowered = message.lower()
    return any(marker in lowered for marker in markers)


def is_connection_error(error: Any) -> bool:
    return _has_marker(error, _CONNECTION_MARKERS)


def is_auth_error(error: Any) -> bool:
    return _has_marker(error, _AUTH_MARKERS)


def format_error(error: Any) -> str:
    """Render an error for display, translating known backend messages."""
    message = error_message(error)
    if not message:
        if error is None:
            return "An unknown error occurred"
        return str(error)
    for needle, friendly in _FRIENDLY_MESSAGES:
        if needle in message:
            return friendly
    return message
