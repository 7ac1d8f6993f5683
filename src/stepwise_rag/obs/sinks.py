"""Trace sinks receiving side-channel tool records."""

from __future__ import annotations

import logging
from typing import Protocol

from stepwise_rag.types import TraceEvent

logger = logging.getLogger(__name__)


class TraceSink(Protocol):
    """Fire-and-forget destination for tool trace events."""

    def append(self, event: TraceEvent) -> None:
        """Deliver one event. May raise; callers treat failures as non-fatal."""


class LoggingTraceSink:
    """Emits each event as one structured log line."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def append(self, event: TraceEvent) -> None:
        record = event.record
        self._log.info(
            "tool %s completed in %.1fms",
            record.name,
            record.duration_ms,
            extra={
                "extra_fields": {
                    "session_id": event.session_id,
                    "session_name": event.session_name,
                    "session_path": record.path,
                    "tool_name": record.name,
                    "tool_kind": record.kind.value,
                    "input": record.input_payload,
                    "output": record.output,
                    "duration_ms": record.duration_ms,
                }
            },
        )


class InMemoryTraceSink:
    """Keeps events in a list. Used for local inspection and tests."""

    def __init__(self) -> None:
        self.events: list[TraceEvent] = []

    def append(self, event: TraceEvent) -> None:
        self.events.append(event)
