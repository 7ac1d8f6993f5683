"""Generative backend contract and the LangChain chat-model adapter."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from langchain_core.messages import BaseMessage

from stepwise_rag.config import BackendSettings
from stepwise_rag.errors import ModelError

logger = logging.getLogger(__name__)

SESSION_ID_HEADER = "Helicone-Session-Id"
SESSION_PATH_HEADER = "Helicone-Session-Path"
SESSION_NAME_HEADER = "Helicone-Session-Name"


def session_headers(session_id: str, path: str, session_name: str) -> dict[str, str]:
    """Correlation headers used by the gateway to draw the session tree."""
    return {
        SESSION_ID_HEADER: session_id,
        SESSION_PATH_HEADER: path,
        SESSION_NAME_HEADER: session_name,
    }


class ChatBackend(Protocol):
    """Minimal chat-completion contract used by every generative stage."""

    def complete(
        self,
        messages: list[BaseMessage],
        *,
        temperature: float,
        max_tokens: int,
        headers: dict[str, str],
    ) -> str:
        """Return the text of the model reply, possibly empty."""


class LangChainChatBackend:
    """Adapts a LangChain chat model to `ChatBackend`.

    Sampling settings and correlation headers are passed per call, so one
    model instance serves all three call sites.
    """

    def __init__(self, llm: Any) -> None:
        self.llm = llm

    def complete(
        self,
        messages: list[BaseMessage],
        *,
        temperature: float,
        max_tokens: int,
        headers: dict[str, str],
    ) -> str:
        path = headers.get(SESSION_PATH_HEADER, "unknown")
        try:
            reply = self.llm.invoke(
                messages,
                temperature=temperature,
                max_tokens=max_tokens,
                extra_headers=headers,
            )
        except Exception as exc:
            raise ModelError(path, str(exc)) from exc
        text = message_text(reply)
        logger.debug("model call %s returned %d chars", path, len(text))
        return text


def create_chat_model(settings: BackendSettings) -> Any:
    """Build the OpenAI-compatible chat model, or None without an API key."""
    if not settings.api_key:
        return None

    from langchain_openai import ChatOpenAI

    default_headers: dict[str, str] = {}
    if settings.helicone_api_key:
        default_headers["Helicone-Auth"] = f"Bearer {settings.helicone_api_key}"

    return ChatOpenAI(
        model=settings.model,
        api_key=settings.api_key,
        base_url=settings.base_url,
        default_headers=default_headers or None,
        temperature=0,
    )


def message_text(reply: Any) -> str:
    if reply is None:
        return ""
    if isinstance(reply, str):
        return reply
    if isinstance(reply, dict):
        return str(reply.get("content") or "")
    content = getattr(reply, "content", "")
    if content is None:
        return ""
    if isinstance(content, list):
        parts: list[str] = []
        for item in content:
            if isinstance(item, dict) and "text" in item:
                parts.append(str(item["text"]))
            else:
                parts.append(str(item))
        return " ".join(parts).strip()
    return str(content)
