"""Deterministic chat backend used when no generative endpoint is configured."""

from __future__ import annotations

import re

from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

from stepwise_rag.llm.backend import SESSION_PATH_HEADER, message_text

_QUESTION_START = re.compile(
    r"^\s*(what|who|whom|whose|which|when|where|why|how|is|are|can|could|does|do|should|explain|define|describe)\b",
    flags=re.IGNORECASE,
)
_QUOTED_QUERY = re.compile(r'Classify:\s*"(?P<text>.*)"\s*$', flags=re.DOTALL)
_CONTEXT = re.compile(r'Context:\s*"(?P<context>.*?)"\.', flags=re.DOTALL)


class OfflineChatBackend:
    """Chat backend that answers from the supplied context without a model.

    This keeps the same reply contract as a hosted model and is useful for
    local/offline environments where `GROQ_API_KEY` is not configured. The
    reply is chosen by the session path header of each call.
    """

    def complete(
        self,
        messages: list[BaseMessage],
        *,
        temperature: float,
        max_tokens: int,
        headers: dict[str, str],
    ) -> str:
        del temperature, max_tokens  # replies are deterministic.
        path = headers.get(SESSION_PATH_HEADER, "")
        if path == "/classify":
            return _classify(messages)
        if path == "/reasoning":
            context = _find_context(messages)
            return f"The context states: {context}. Answer the user directly from it."
        if path == "/final-response":
            return _find_context(messages)
        return ""


def _classify(messages: list[BaseMessage]) -> str:
    text = _last_human(messages)
    match = _QUOTED_QUERY.search(text)
    if match:
        text = match.group("text")
    if text.rstrip().endswith("?") or _QUESTION_START.match(text):
        return "question"
    return "general"


def _find_context(messages: list[BaseMessage]) -> str:
    for message in messages:
        if isinstance(message, (SystemMessage, HumanMessage)):
            match = _CONTEXT.search(message_text(message))
            if match:
                return match.group("context").strip()
    return ""


def _last_human(messages: list[BaseMessage]) -> str:
    for message in reversed(messages):
        if isinstance(message, HumanMessage):
            return message_text(message)
    return ""
