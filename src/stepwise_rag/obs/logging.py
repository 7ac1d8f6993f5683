"""Structured JSON logging with per-session correlation fields."""

from __future__ import annotations

import json
import logging
import sys
import traceback
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone

_LOGGER_NAME = "stepwise_rag"
_CONFIGURED_ATTR = "_stepwise_json_logging"

session_id_var: ContextVar[str | None] = ContextVar("session_id", default=None)
session_path_var: ContextVar[str | None] = ContextVar("session_path", default=None)


@contextmanager
def log_context(
    *, session_id: str | None = None, session_path: str | None = None
) -> Iterator[None]:
    """Bind correlation fields to every record logged inside the block."""
    id_token = session_id_var.set(session_id) if session_id is not None else None
    path_token = session_path_var.set(session_path) if session_path is not None else None
    try:
        yield
    finally:
        if path_token is not None:
            session_path_var.reset(path_token)
        if id_token is not None:
            session_id_var.reset(id_token)


def get_log_context() -> dict[str, str]:
    values = {
        "session_id": session_id_var.get(),
        "session_path": session_path_var.get(),
    }
    return {key: value for key, value in values.items() if value is not None}


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "ts_iso_utc": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(get_log_context())

        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            payload.update(extra_fields)

        if record.exc_info:
            exc_type, exc_value, exc_tb = record.exc_info
            payload["exc_type"] = exc_type.__name__ if exc_type else "Exception"
            payload["exc_msg"] = str(exc_value) if exc_value else ""
            payload["stack"] = "".join(traceback.format_exception(exc_type, exc_value, exc_tb))

        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach one JSON stdout handler to the package logger, idempotently."""
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(getattr(logging, level.strip().upper(), logging.INFO))

    if not any(getattr(handler, _CONFIGURED_ATTR, False) for handler in logger.handlers):
        handler = logging.StreamHandler(stream=sys.stdout)
        handler.setFormatter(JSONFormatter())
        setattr(handler, _CONFIGURED_ATTR, True)
        logger.addHandler(handler)

    return logger
