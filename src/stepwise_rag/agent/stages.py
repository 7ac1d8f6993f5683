"""Reasoning and final-answer generation stages."""

from __future__ import annotations

from langchain_core.prompts import ChatPromptTemplate

from stepwise_rag.config import GenerationConfig
from stepwise_rag.llm.backend import ChatBackend

NO_FINAL_RESPONSE = "No final response."

_REASONING_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", "You are a reasoning assistant."),
        ("human", 'Context: "{context}". Reason about how to answer "{query}".'),
    ]
)

_FINAL_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", 'Friendly assistant.\nContext: "{context}".\nReasoning: "{reasoning}".'),
        ("human", "{query}"),
    ]
)


class ReasoningStage:
    """Produces advisory step-by-step reasoning. Output is not validated."""

    def __init__(self, backend: ChatBackend, config: GenerationConfig | None = None) -> None:
        self.backend = backend
        self.config = config or GenerationConfig(temperature=0.3, max_tokens=200)

    def reason(self, query: str, context: str, *, headers: dict[str, str] | None = None) -> str:
        reply = self.backend.complete(
            _REASONING_PROMPT.format_messages(context=context, query=query),
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
            headers=headers or {},
        )
        return reply or ""


class ResponseSynthesizer:
    """Writes the user-visible answer; never returns an empty string."""

    def __init__(self, backend: ChatBackend, config: GenerationConfig | None = None) -> None:
        self.backend = backend
        self.config = config or GenerationConfig(temperature=0.5, max_tokens=500)

    def synthesize(
        self,
        query: str,
        context: str,
        reasoning: str,
        *,
        headers: dict[str, str] | None = None,
    ) -> str:
        reply = self.backend.complete(
            _FINAL_PROMPT.format_messages(context=context, reasoning=reasoning, query=query),
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
            headers=headers or {},
        )
        if not reply or not reply.strip():
            return NO_FINAL_RESPONSE
        return reply
