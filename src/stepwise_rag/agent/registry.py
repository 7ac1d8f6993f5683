"""Tool registry built on Pydantic v2 models, with per-call step tracing."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from stepwise_rag.errors import ToolError
from stepwise_rag.obs.session import SessionContext, Stopwatch
from stepwise_rag.obs.sinks import TraceSink
from stepwise_rag.types import ContextResult, SessionTrace, StepKind, StepRecord, TraceEvent

logger = logging.getLogger(__name__)


class ToolSpec(BaseModel):
    """Declarative tool specification for registration and validation."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    description: str
    args_schema: type[BaseModel]
    handler: Callable[[BaseModel], Any]
    kind: StepKind = StepKind.FUNCTION
    path: str = "/tool-execution"
    tags: list[str] = Field(default_factory=list)

    def validate_payload(self, payload: dict[str, Any]) -> BaseModel:
        return self.args_schema.model_validate(payload)


class ToolRegistry:
    """Stores tool specs and runs them with step recording.

    Every traced execution appends a `StepRecord` to the caller's session
    trace, then offers a `TraceEvent` to the trace sink. The step append
    always happens; sink failures are logged and dropped.
    """

    def __init__(
        self,
        *,
        session: SessionContext | None = None,
        sink: TraceSink | None = None,
    ) -> None:
        self._tools: dict[str, ToolSpec] = {}
        self._session = session or SessionContext()
        self._sink = sink

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._tools:
            raise ValueError(f"Tool already registered: {spec.name}")
        self._tools[spec.name] = spec

    def get(self, name: str) -> ToolSpec:
        spec = self._tools.get(name)
        if spec is None:
            raise KeyError(f"Unknown tool: {name}")
        return spec

    def specs(self) -> list[ToolSpec]:
        return list(self._tools.values())

    def execute(
        self,
        name: str,
        payload: dict[str, Any],
        *,
        trace: SessionTrace | None = None,
    ) -> Any:
        """Validate `payload`, run the tool, and trace it when `trace` is given.

        Validation errors propagate unchanged. A failing handler is recorded
        as an errored step and re-raised as `ToolError`.
        """
        spec = self.get(name)
        data = spec.validate_payload(payload)

        watch = Stopwatch()
        try:
            output = spec.handler(data)
        except Exception as exc:
            if trace is not None:
                self._record(
                    spec, trace, payload, "", watch.started_at, watch.elapsed_ms(), error=str(exc)
                )
            raise ToolError(spec.name, str(exc)) from exc

        if trace is not None:
            self._record(
                spec, trace, payload, _preview(output), watch.started_at, watch.elapsed_ms()
            )
        return output

    def _record(
        self,
        spec: ToolSpec,
        trace: SessionTrace,
        payload: dict[str, Any],
        output: str,
        started_at: datetime,
        duration_ms: float,
        *,
        error: str | None = None,
    ) -> None:
        record = self._session.record_step(
            trace,
            spec.path,
            payload,
            output,
            name=spec.name,
            kind=spec.kind,
            started_at=started_at,
            duration_ms=duration_ms,
            error=error,
        )
        self._emit(trace, record)

    def _emit(self, trace: SessionTrace, record: StepRecord) -> None:
        if self._sink is None:
            return
        try:
            self._sink.append(
                TraceEvent(session_id=trace.session_id, session_name=trace.name, record=record)
            )
        except Exception:
            logger.warning(
                "trace sink rejected %s for session %s",
                record.name,
                trace.session_id,
                exc_info=True,
            )


def _preview(output: Any) -> str:
    if isinstance(output, ContextResult):
        return output.value[:320]
    return str(output)[:320]
