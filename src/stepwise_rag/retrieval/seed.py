"""Default knowledge corpus and one-time index seeding."""

from __future__ import annotations

import logging

from stepwise_rag.retrieval.vector_store import KnowledgeIndex

logger = logging.getLogger(__name__)

DEFAULT_DOCUMENTS: list[tuple[str, str, str]] = [
    (
        "ai",
        "AI",
        "Artificial Intelligence (AI) is the simulation of human-like intelligence by machines "
        "to perform tasks like learning, reasoning, and problem-solving.",
    ),
    (
        "helicone",
        "Helicone",
        "Helicone is a developer platform for monitoring and debugging AI agents and LLM "
        "applications. It provides observability into prompts, costs, latency, and session flows.",
    ),
    (
        "rag",
        "RAG",
        "Retrieval-Augmented Generation (RAG) is an AI framework that retrieves external "
        "information and injects it into the prompt for better, more factual responses.",
    ),
    (
        "observability",
        "Observability",
        "Observability in AI refers to the practice of understanding, monitoring, and debugging "
        "model behavior by tracking key metrics like latency, cost, token usage, and session traces.",
    ),
    (
        "mcp",
        "Model Context Protocol",
        "Model Context Protocol (MCP) allows AI agents to connect external tools, APIs, or "
        "services dynamically at runtime using a standard protocol for enhanced capabilities.",
    ),
    (
        "llmops",
        "LLMOps",
        "LLMOps refers to operational practices around managing, monitoring, scaling, and "
        "debugging large language models in production environments.",
    ),
]


def seed_knowledge_base(
    index: KnowledgeIndex,
    documents: list[tuple[str, str, str]] | None = None,
) -> int:
    """Seed `index` once; returns how many documents were added.

    Not safe for concurrent invocation. Run it at process start, before the
    pipeline accepts traffic.
    """

    if index.count() > 0:
        logger.info("knowledge base already holds %d documents; skipping seed", index.count())
        return 0

    corpus = documents if documents is not None else DEFAULT_DOCUMENTS
    if not corpus:
        return 0
    index.seed(
        ids=[doc_id for doc_id, _, _ in corpus],
        metadatas=[{"topic": topic} for _, topic, _ in corpus],
        documents=[text for _, _, text in corpus],
    )
    logger.info("seeded knowledge base with %d documents", len(corpus))
    return len(corpus)
