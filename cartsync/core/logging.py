# Copyright (c) 2026 CartSync Contributors. All Rights Reserved.

"""
Structured Logging — JSON lines with request and operation context.
"""

from __future__ import annotations

import json
import logging
import sys

_CONTEXT_KEYS = ("trace_id", "operation_id", "target", "attempt", "delay_ms", "status_code")


class StructuredFormatter(logging.Formatter):
    """JSON log formatter that carries trace/operation context from ``extra``."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "module": record.name,
            "message": record.getMessage(),
        }
        for key in _CONTEXT_KEYS:
            val = getattr(record, key, None)
            if val is not None:
                log_entry[key] = val

        if record.exc_info and record.exc_info[0]:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging on the root logger."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter())

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)
