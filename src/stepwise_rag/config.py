"""Configuration models for the stepwise RAG pipeline."""

from __future__ import annotations

import os

from pydantic import BaseModel, Field

DEFAULT_MODEL = "meta-llama/llama-4-scout-17b-16e-instruct"
DEFAULT_BASE_URL = "https://groq.helicone.ai/openai/v1"
DEFAULT_SESSION_NAME = "Multi-Step RAG Agent"


class GenerationConfig(BaseModel):
    """Sampling settings for a single generative call site."""

    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    max_tokens: int = Field(default=200, ge=1)


class RetrievalConfig(BaseModel):
    """Configures knowledge retrieval for question-classified input."""

    top_k: int = Field(default=1, ge=1, le=10)
    # None keeps the top match regardless of how weakly it relates.
    min_similarity: float | None = Field(default=None, ge=-1.0, le=1.0)


class AgentConfig(BaseModel):
    """Configures the per-stage generative settings of one pipeline run."""

    session_name: str = Field(default=DEFAULT_SESSION_NAME, min_length=1)
    classify: GenerationConfig = Field(
        default_factory=lambda: GenerationConfig(temperature=0.3, max_tokens=10)
    )
    reasoning: GenerationConfig = Field(
        default_factory=lambda: GenerationConfig(temperature=0.3, max_tokens=200)
    )
    final: GenerationConfig = Field(
        default_factory=lambda: GenerationConfig(temperature=0.5, max_tokens=500)
    )
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)


class BackendSettings(BaseModel):
    """Connection settings for the generative backend and vector index."""

    api_key: str | None = None
    helicone_api_key: str | None = None
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    index_backend: str = Field(default="memory", pattern="^(memory|faiss)$")
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "BackendSettings":
        return cls(
            api_key=os.getenv("GROQ_API_KEY") or None,
            helicone_api_key=os.getenv("HELICONE_API_KEY") or None,
            model=os.getenv("STEPWISE_MODEL", DEFAULT_MODEL),
            base_url=os.getenv("STEPWISE_BASE_URL", DEFAULT_BASE_URL),
            index_backend=os.getenv("STEPWISE_INDEX_BACKEND", "memory"),
            log_level=os.getenv("STEPWISE_LOG_LEVEL", "INFO"),
        )

    @property
    def llm_configured(self) -> bool:
        return bool(self.api_key)
