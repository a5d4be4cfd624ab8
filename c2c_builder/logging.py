"""Structured logging helpers: JSON lines with context."""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import UTC, datetime
from typing import Any

LOG_LEVEL_ENV = "C2C_LOG_LEVEL"

# Build context passed through `extra=`; emitted as top level keys when set.
CONTEXT_FIELDS = ("image", "directory", "artifact")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = str(value)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _level_from_env() -> int:
    name = os.environ.get(LOG_LEVEL_ENV, "INFO").strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: str = "c2c_builder") -> logging.Logger:
    """Return a logger whose records end up as JSON lines on stderr.

    Module loggers (``c2c_builder.*``) propagate to the package logger, which
    owns the single handler.
    """
    root = logging.getLogger("c2c_builder")
    if not root.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setFormatter(JsonFormatter())
        root.addHandler(handler)
        root.setLevel(_level_from_env())
    return logging.getLogger(name)
