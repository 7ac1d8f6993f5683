from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

import pytest
from langchain_core.messages import BaseMessage

from stepwise_rag.agent.orchestrator import QueryOrchestrator
from stepwise_rag.agent.registry import ToolRegistry
from stepwise_rag.agent.tools import register_builtin_tools
from stepwise_rag.llm.backend import SESSION_PATH_HEADER
from stepwise_rag.obs.session import SessionContext
from stepwise_rag.obs.sinks import InMemoryTraceSink
from stepwise_rag.obs.tracing import TraceStore
from stepwise_rag.retrieval.seed import seed_knowledge_base
from stepwise_rag.retrieval.vector_store import InMemoryKnowledgeIndex

FIXED_NOW = datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


@dataclass(slots=True)
class BackendCall:
    path: str
    messages: list[BaseMessage]
    temperature: float
    max_tokens: int
    headers: dict[str, str]


@dataclass
class ScriptedBackend:
    """Chat backend double answering by session path."""

    replies: dict[str, str] = field(default_factory=dict)
    failures: dict[str, Exception] = field(default_factory=dict)
    calls: list[BackendCall] = field(default_factory=list)

    def complete(
        self,
        messages: list[BaseMessage],
        *,
        temperature: float,
        max_tokens: int,
        headers: dict[str, str],
    ) -> str:
        path = headers.get(SESSION_PATH_HEADER, "")
        self.calls.append(
            BackendCall(
                path=path,
                messages=list(messages),
                temperature=temperature,
                max_tokens=max_tokens,
                headers=dict(headers),
            )
        )
        if path in self.failures:
            raise self.failures[path]
        return self.replies.get(path, "")

    def paths(self) -> list[str]:
        return [call.path for call in self.calls]


class CountingIndex(InMemoryKnowledgeIndex):
    """In-memory index that counts queries."""

    def __init__(self) -> None:
        super().__init__()
        self.queries: list[tuple[str, int]] = []

    def query(self, text: str, top_k: int):  # type: ignore[override]
        self.queries.append((text, top_k))
        return super().query(text, top_k)


@pytest.fixture
def seeded_index() -> CountingIndex:
    index = CountingIndex()
    seed_knowledge_base(index)
    return index


@pytest.fixture
def sink() -> InMemoryTraceSink:
    return InMemoryTraceSink()


@pytest.fixture
def question_backend() -> ScriptedBackend:
    return ScriptedBackend(
        replies={
            "/classify": "question",
            "/reasoning": "Define AI using the context.",
            "/final-response": "AI is the simulation of human intelligence by machines.",
        }
    )


def build_orchestrator(
    backend: ScriptedBackend,
    index: InMemoryKnowledgeIndex,
    sink: InMemoryTraceSink | None = None,
    trace_store: TraceStore | None = None,
) -> QueryOrchestrator:
    session = SessionContext()
    registry = ToolRegistry(session=session, sink=sink)
    register_builtin_tools(registry, index, clock=lambda: FIXED_NOW)
    return QueryOrchestrator(
        backend=backend,
        tool_registry=registry,
        session=session,
        trace_store=trace_store,
    )
