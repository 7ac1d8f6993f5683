"""Chooses and runs exactly one context-resolution branch per query."""

from __future__ import annotations

from stepwise_rag.agent.registry import ToolRegistry
from stepwise_rag.agent.tools import KNOWLEDGE_TOOL, TIME_TOOL
from stepwise_rag.config import RetrievalConfig
from stepwise_rag.types import Classification, ContextResult, IntentDecision, SessionTrace


class ContextResolver:
    def __init__(
        self,
        tool_registry: ToolRegistry,
        config: RetrievalConfig | None = None,
    ) -> None:
        self.tool_registry = tool_registry
        self.config = config or RetrievalConfig()

    def resolve(
        self,
        decision: IntentDecision,
        text: str,
        *,
        trace: SessionTrace | None = None,
    ) -> ContextResult:
        # Anything short of a model-classified question, including the
        # time fast path, resolves to the current time.
        if decision.classification is Classification.QUESTION and not decision.fast_path:
            return self.tool_registry.execute(
                KNOWLEDGE_TOOL,
                {"query": text, "top_k": self.config.top_k},
                trace=trace,
            )
        return self.tool_registry.execute(TIME_TOOL, {}, trace=trace)
