"""Shared domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Classification(str, Enum):
    """Intent of a query. Exactly one value per query."""

    QUESTION = "question"
    GENERAL = "general"


class SourceKind(str, Enum):
    KNOWLEDGE_BASE = "knowledge_base"
    TIME_TOOL = "time_tool"


class StepKind(str, Enum):
    LLM = "llm"
    RETRIEVAL = "retrieval"
    FUNCTION = "function"


@dataclass(slots=True, frozen=True)
class IntentDecision:
    """Classification outcome plus how it was reached."""

    classification: Classification
    fast_path: bool
    raw_output: str | None = None


@dataclass(slots=True, frozen=True)
class IndexMatch:
    """One ranked hit returned by a knowledge index."""

    document_id: str
    document: str
    distance: float
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def similarity(self) -> float:
        return 1.0 - self.distance


@dataclass(slots=True, frozen=True)
class Provenance:
    document_id: str
    similarity: float
    distance: float


@dataclass(slots=True, frozen=True)
class ContextResult:
    """Supporting context produced by exactly one resolution branch."""

    source_kind: SourceKind
    value: str
    provenance: Provenance | None = None


@dataclass(slots=True, frozen=True)
class StepRecord:
    """One executed pipeline step. Never mutated after it is appended."""

    path: str
    name: str
    kind: StepKind
    input_payload: dict[str, Any]
    output: str
    started_at: str
    duration_ms: float
    error: str | None = None


@dataclass(slots=True)
class SessionTrace:
    """Ordered, append-only record of one query's pipeline run."""

    session_id: str
    name: str
    query: str
    started_at: str
    steps: list[StepRecord] = field(default_factory=list)
    status: str = "running"
    error: str | None = None

    @property
    def paths(self) -> list[str]:
        return [step.path for step in self.steps]

    @property
    def duration_ms(self) -> float:
        return sum(step.duration_ms for step in self.steps)


@dataclass(slots=True, frozen=True)
class TraceEvent:
    """Side-channel record handed to a trace sink after a tool runs."""

    session_id: str
    session_name: str
    record: StepRecord


@dataclass(slots=True, frozen=True)
class PipelineResult:
    response: str
    session_id: str
    trace: SessionTrace
