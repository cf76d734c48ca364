# Copyright (c) 2026 CartSync Contributors. All Rights Reserved.

"""
CartSync Configuration — Environment-driven settings.

All configuration is loaded from environment variables (or .env file).
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class CartSyncSettings(BaseSettings):
    """Service-wide configuration loaded from environment."""

    # --- Storage ---
    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for the offline queue mirror",
    )
    STORAGE_BACKEND: str = Field(
        default="redis",
        description="Durable store for offline operations: redis | memory",
    )
    QUEUE_NAMESPACE: str = Field(
        default="default",
        description="Key namespace (one per device / user scope)",
    )
    OFFLINE_QUEUE_KEY: str = Field(
        default="offlineOperations",
        description="Key under which the serialized offline queue is stored",
    )

    # --- Retry ---
    RETRY_MAX_RETRIES: int = Field(
        default=3,
        ge=0,
        description="Retries after the initial attempt",
    )
    RETRY_BASE_DELAY_MS: int = Field(
        default=1000,
        gt=0,
        description="Seed delay for backoff calculation (ms)",
    )
    RETRY_MAX_DELAY_MS: int = Field(
        default=30000,
        gt=0,
        description="Ceiling applied to every computed delay (ms)",
    )
    RETRY_STRATEGY: str = Field(
        default="exponential",
        description="Backoff strategy: fixed | exponential | random",
    )
    RETRY_FACTOR: float = Field(
        default=2.0,
        gt=0,
        description="Growth factor for exponential / random backoff",
    )

    # --- Offline queue ---
    OFFLINE_MAX_RETRIES: int = Field(
        default=10,
        ge=0,
        description="Retry cap carried by the offline drain policy",
    )
    DRAIN_INTERVAL: float = Field(
        default=60.0,
        gt=0,
        description="Seconds between periodic offline queue drains",
    )

    # --- Backend (PostgREST-style data API) ---
    BACKEND_URL: str = Field(
        default="http://localhost:54321/rest/v1",
        description="Base URL of the hosted data API",
    )
    BACKEND_API_KEY: str = Field(
        default="",
        description="Anon/service API key sent as the apikey header",
    )
    BACKEND_TIMEOUT: float = Field(
        default=30.0,
        gt=0,
        description="HTTP timeout for backend calls in seconds",
    )

    # --- Connectivity ---
    CONNECTIVITY_PROBE_URL: str = Field(
        default="",
        description="URL polled to detect connectivity (empty = manual signal only)",
    )
    CONNECTIVITY_PROBE_INTERVAL: float = Field(
        default=15.0,
        gt=0,
        description="Seconds between connectivity probes",
    )

    # --- Platform ---
    LOG_LEVEL: str = Field(default="INFO")
    CARTSYNC_ENV: str = Field(
        default="dev",
        description="Environment: dev | prod",
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }


# Global singleton
settings = CartSyncSettings()
