"""Stepwise RAG agent package."""

from .config import AgentConfig, BackendSettings, GenerationConfig, RetrievalConfig

__all__ = ["AgentConfig", "BackendSettings", "GenerationConfig", "RetrievalConfig"]
