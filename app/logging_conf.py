"""Logging configuration for the service.

Every log line is a single JSON object. Structured fields passed through
``extra={...}`` are merged into the object; credential-bearing fields are
masked before they reach the stream. ``setup_logging()`` is idempotent.
"""
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import UTC, datetime
from logging import Handler, LogRecord
from typing import Any

_DEFAULT_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Attributes every LogRecord carries; anything else on the record came from `extra`.
_RECORD_ATTRS = frozenset(vars(LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}
_REDACTED_KEYS = frozenset({"password", "hashedPassword", "hashed_password", "token"})
_MASK = "***"


def _redact(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: (_MASK if k in _REDACTED_KEYS else _redact(v)) for k, v in value.items()}
    return value


class JsonFormatter(logging.Formatter):
    """Render a record as one JSON line: ts, level, logger, message + extras."""

    def format(self, record: LogRecord) -> str:  # type: ignore[override]
        payload: dict[str, Any] = {
            "ts": datetime.now(UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
        }

        if isinstance(record.msg, dict):
            payload.update(_redact(record.msg))
        else:
            payload["message"] = record.getMessage()

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or key in payload:
                continue
            payload[key] = _MASK if key in _REDACTED_KEYS else _redact(value)

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def _make_stream_handler(level: int) -> Handler:
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter())
    return handler


def setup_logging(level: str | int = _DEFAULT_LEVEL) -> None:
    """Attach the JSON handler to the root logger and route uvicorn through it.

    A repeated call only re-levels: it never adds a second handler, and it
    leaves foreign handlers (reload, tests) in place.
    """
    root = logging.getLogger()

    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    root.setLevel(level)
    ours = [h for h in root.handlers if isinstance(h.formatter, JsonFormatter)]
    for h in ours:
        h.setLevel(level)
    if not root.handlers:
        root.addHandler(_make_stream_handler(level))

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        lg = logging.getLogger(name)
        lg.setLevel(level)
        lg.propagate = True
        for h in list(lg.handlers):
            lg.removeHandler(h)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a named logger, e.g. ``get_logger("store")``."""
    return logging.getLogger(name if name else "app")
