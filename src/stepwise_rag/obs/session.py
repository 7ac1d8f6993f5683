"""Session correlation ids and ordered step recording."""

from __future__ import annotations

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from stepwise_rag.config import DEFAULT_SESSION_NAME
from stepwise_rag.obs.logging import log_context
from stepwise_rag.types import SessionTrace, StepKind, StepRecord

_ONE_MS = timedelta(milliseconds=1)


class Stopwatch:
    """Start time and elapsed milliseconds read from the same UTC clock."""

    __slots__ = ("started_at",)

    def __init__(self) -> None:
        self.started_at = _utc_now()

    def elapsed_ms(self) -> float:
        return (_utc_now() - self.started_at) / _ONE_MS


@dataclass(slots=True)
class StepHandle:
    """Mutable holder a stage fills in while its step is being timed."""

    output: str = ""


class SessionContext:
    """Creates session traces and appends timed steps to them.

    A `SessionContext` holds no per-request state, so one instance can be
    shared by concurrent pipeline runs. Each run owns its `SessionTrace`.
    """

    def __init__(self, session_name: str = DEFAULT_SESSION_NAME) -> None:
        self.session_name = session_name

    def begin(self, query: str) -> SessionTrace:
        return SessionTrace(
            session_id=str(uuid.uuid4()),
            name=self.session_name,
            query=query,
            started_at=_utc_now().isoformat(),
        )

    def record_step(
        self,
        trace: SessionTrace,
        path: str,
        input_payload: dict[str, Any],
        output: str,
        *,
        name: str,
        kind: StepKind,
        started_at: datetime,
        duration_ms: float,
        error: str | None = None,
    ) -> StepRecord:
        """Append a step, rejecting any that starts before the last one ended."""
        if trace.steps:
            previous = trace.steps[-1]
            previous_end = datetime.fromisoformat(previous.started_at) + timedelta(
                milliseconds=previous.duration_ms
            )
            if started_at < previous_end:
                raise ValueError(
                    f"Step {path} started before {previous.path} ended; traces are append-only"
                )
        record = StepRecord(
            path=path,
            name=name,
            kind=kind,
            input_payload=dict(input_payload),
            output=output,
            started_at=started_at.isoformat(),
            duration_ms=duration_ms,
            error=error,
        )
        trace.steps.append(record)
        return record

    @contextmanager
    def step(
        self,
        trace: SessionTrace,
        path: str,
        input_payload: dict[str, Any],
        *,
        name: str,
        kind: StepKind = StepKind.LLM,
    ) -> Iterator[StepHandle]:
        """Time the enclosed block and record it as one step.

        A step whose block raises is still recorded, with the error message,
        before the exception propagates.
        """
        handle = StepHandle()
        watch = Stopwatch()
        try:
            with log_context(session_path=path):
                yield handle
        except Exception as exc:
            self.record_step(
                trace,
                path,
                input_payload,
                handle.output,
                name=name,
                kind=kind,
                started_at=watch.started_at,
                duration_ms=watch.elapsed_ms(),
                error=str(exc),
            )
            raise
        self.record_step(
            trace,
            path,
            input_payload,
            handle.output,
            name=name,
            kind=kind,
            started_at=watch.started_at,
            duration_ms=watch.elapsed_ms(),
        )


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)
