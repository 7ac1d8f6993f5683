"""Context-resolution tools: knowledge retrieval and current time."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

from pydantic import BaseModel, Field

from stepwise_rag.agent.registry import ToolRegistry, ToolSpec
from stepwise_rag.config import RetrievalConfig
from stepwise_rag.retrieval.vector_store import KnowledgeIndex
from stepwise_rag.types import ContextResult, Provenance, SourceKind, StepKind

KNOWLEDGE_TOOL = "knowledge_retrieval"
TIME_TOOL = "get_current_time"
NO_KNOWLEDGE = "No relevant knowledge found."


class KnowledgeToolInput(BaseModel):
    query: str = Field(min_length=1)
    top_k: int = Field(default=1, ge=1, le=10)


class TimeToolInput(BaseModel):
    pass


def register_builtin_tools(
    registry: ToolRegistry,
    index: KnowledgeIndex,
    *,
    retrieval_config: RetrievalConfig | None = None,
    clock: Callable[[], datetime] | None = None,
) -> None:
    """Register the two context-resolution tools.

    Tools:
    - `knowledge_retrieval`: top match from the knowledge index.
    - `get_current_time`: current UTC timestamp, no external call.
    """

    config = retrieval_config or RetrievalConfig()
    now = clock or (lambda: datetime.now(timezone.utc))

    def _retrieve(input_data: KnowledgeToolInput) -> ContextResult:
        matches = index.query(input_data.query, input_data.top_k)
        if not matches:
            return ContextResult(source_kind=SourceKind.KNOWLEDGE_BASE, value=NO_KNOWLEDGE)

        top = matches[0]
        if config.min_similarity is not None and top.similarity < config.min_similarity:
            return ContextResult(source_kind=SourceKind.KNOWLEDGE_BASE, value=NO_KNOWLEDGE)
        return ContextResult(
            source_kind=SourceKind.KNOWLEDGE_BASE,
            value=top.document,
            provenance=Provenance(
                document_id=top.document_id,
                similarity=top.similarity,
                distance=top.distance,
            ),
        )

    def _current_time(input_data: TimeToolInput) -> ContextResult:
        del input_data
        return ContextResult(
            source_kind=SourceKind.TIME_TOOL,
            value=f"Current time is {now().isoformat()}",
        )

    registry.register(
        ToolSpec(
            name=KNOWLEDGE_TOOL,
            description="Look up the closest knowledge-base document for a question.",
            args_schema=KnowledgeToolInput,
            handler=_retrieve,
            kind=StepKind.RETRIEVAL,
            path="/knowledge-retrieval",
            tags=["retrieval", "rag"],
        )
    )
    registry.register(
        ToolSpec(
            name=TIME_TOOL,
            description="Return the current UTC time.",
            args_schema=TimeToolInput,
            handler=_current_time,
            kind=StepKind.FUNCTION,
            path="/tool-execution",
            tags=["time"],
        )
    )
