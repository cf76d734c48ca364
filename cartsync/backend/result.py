# Copyright (c) 2026 CartSync Contributors. All Rights Reserved.

"""
Result — Success value or BackendError, never both.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from cartsync.core.errors import BackendError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    data: Optional[T] = None
    error: Optional[BackendError] = None

    def __post_init__(self) -> None:
        if self.data is not None and self.error is not None:
            raise ValueError("Result cannot carry both data and error")

    @classmethod
    def success(cls, data: T) -> Result[T]:
        return cls(data=data)

    @classmethod
    def failure(cls, error: BackendError) -> Result[T]:
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the data or raise the carried BackendError."""
        if self.error is not None:
            raise self.error
        return self.data
