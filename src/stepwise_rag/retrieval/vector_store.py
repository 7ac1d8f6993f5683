"""Knowledge index interfaces and concrete adapters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, cast

from stepwise_rag.retrieval.embedder import Embedder, HashingEmbedder, unit_vector
from stepwise_rag.types import IndexMatch


class KnowledgeIndex(Protocol):
    """Vector index contract consumed by knowledge retrieval."""

    def query(self, text: str, top_k: int) -> list[IndexMatch]:
        """Return up to `top_k` matches ordered by ascending distance."""

    def seed(
        self, ids: list[str], metadatas: list[dict[str, Any]], documents: list[str]
    ) -> None:
        """Add documents to the index."""

    def count(self) -> int:
        """Number of indexed documents."""


@dataclass(slots=True)
class _StoredDocument:
    document_id: str
    document: str
    metadata: dict[str, Any]
    embedding: list[float]


class InMemoryKnowledgeIndex:
    """Deterministic index used for tests and local prototyping.

    Embeddings are stored at unit length, so distance is `1 - dot product`,
    the cosine distance whatever the embedder returns. Metadata values are
    embedded together with the document text, so a document's topic label
    counts toward its match.
    """

    def __init__(self, embedder: Embedder | None = None) -> None:
        self.embedder = embedder or HashingEmbedder()
        self._store: dict[str, _StoredDocument] = {}

    def seed(
        self, ids: list[str], metadatas: list[dict[str, Any]], documents: list[str]
    ) -> None:
        _check_lengths(ids, metadatas, documents)
        embeddings = self.embedder.embed_documents(
            [_index_text(doc, meta) for doc, meta in zip(documents, metadatas, strict=True)]
        )
        for doc_id, metadata, document, embedding in zip(
            ids, metadatas, documents, embeddings, strict=True
        ):
            self._store[doc_id] = _StoredDocument(
                document_id=doc_id,
                document=document,
                metadata=dict(metadata),
                embedding=unit_vector(embedding),
            )

    def query(self, text: str, top_k: int) -> list[IndexMatch]:
        if top_k < 1:
            raise ValueError("top_k must be >= 1")
        query_embedding = unit_vector(self.embedder.embed_query(text))
        ranked = sorted(
            (
                IndexMatch(
                    document_id=record.document_id,
                    document=record.document,
                    distance=1.0 - _dot(query_embedding, record.embedding),
                    metadata=dict(record.metadata),
                )
                for record in self._store.values()
            ),
            key=lambda item: item.distance,
        )
        return ranked[:top_k]

    def count(self) -> int:
        return len(self._store)


class FaissKnowledgeIndex:
    """FAISS adapter via LangChain community integration.

    This adapter keeps the same contract as `InMemoryKnowledgeIndex` so it can
    be swapped in production with minimal code changes. FAISS reports squared
    L2 distance; for unit-length embeddings that is twice the cosine distance,
    so scores are halved to keep `1 - distance` a cosine similarity.
    """

    def __init__(self, embedder: Embedder | None = None) -> None:
        try:
            from langchain_community.vectorstores import FAISS
            from langchain_core.embeddings import Embeddings
        except Exception as exc:  # pragma: no cover - import path is environment-dependent
            raise RuntimeError(
                "FAISS dependencies are not available. Install langchain-community/faiss-cpu."
            ) from exc

        class _EmbeddingAdapter(Embeddings):
            def __init__(self, adapter_embedder: Embedder) -> None:
                self._embedder = adapter_embedder

            def embed_documents(self, texts: list[str]) -> list[list[float]]:
                return cast(list[list[float]], self._embedder.embed_documents(texts))

            def embed_query(self, text: str) -> list[float]:
                return cast(list[float], self._embedder.embed_query(text))

        self._faiss_cls = FAISS
        self._embeddings = _EmbeddingAdapter(embedder or HashingEmbedder())
        self._index: Any | None = None

    def seed(
        self, ids: list[str], metadatas: list[dict[str, Any]], documents: list[str]
    ) -> None:
        _check_lengths(ids, metadatas, documents)
        enriched = [{**meta, "document_id": doc_id} for doc_id, meta in zip(ids, metadatas, strict=True)]
        embeddings = self._embeddings.embed_documents(
            [_index_text(doc, meta) for doc, meta in zip(documents, metadatas, strict=True)]
        )
        text_embeddings = list(zip(documents, embeddings, strict=True))

        if self._index is None:
            self._index = self._faiss_cls.from_embeddings(
                text_embeddings=text_embeddings,
                embedding=self._embeddings,
                metadatas=enriched,
                ids=ids,
            )
            return
        self._index.add_embeddings(text_embeddings=text_embeddings, metadatas=enriched, ids=ids)

    def query(self, text: str, top_k: int) -> list[IndexMatch]:
        if top_k < 1:
            raise ValueError("top_k must be >= 1")
        if self._index is None:
            return []
        docs_and_scores = self._index.similarity_search_with_score(text, k=top_k)
        results: list[IndexMatch] = []
        for rank, (doc, score) in enumerate(docs_and_scores, start=1):
            metadata = dict(doc.metadata)
            doc_id = str(metadata.pop("document_id", f"faiss-{rank}"))
            results.append(
                IndexMatch(
                    document_id=doc_id,
                    document=doc.page_content,
                    distance=float(score) / 2.0,
                    metadata=metadata,
                )
            )
        return results

    def count(self) -> int:
        if self._index is None:
            return 0
        return int(self._index.index.ntotal)


def _index_text(document: str, metadata: dict[str, Any]) -> str:
    labels = " ".join(str(value) for value in metadata.values())
    return f"{labels}\n{document}" if labels else document


def _check_lengths(ids: list[str], metadatas: list[dict[str, Any]], documents: list[str]) -> None:
    if not (len(ids) == len(metadatas) == len(documents)):
        raise ValueError("ids, metadatas and documents must have the same length")


def _dot(a: list[float], b: list[float]) -> float:
    return sum(x * y for x, y in zip(a, b, strict=True))
