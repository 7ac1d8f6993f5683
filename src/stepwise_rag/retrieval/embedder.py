"""Text embedders for the knowledge index."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections import Counter
from functools import lru_cache
from hashlib import blake2b
from math import sqrt

_WORD_PATTERN = re.compile(r"\w+", flags=re.UNICODE)


class Embedder(ABC):
    """Maps text to fixed-length vectors."""

    @abstractmethod
    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        """Embed many documents."""

    @abstractmethod
    def embed_query(self, text: str) -> list[float]:
        """Embed one query."""


class HashingEmbedder(Embedder):
    """Signed feature hashing over lowercase word tokens.

    Each distinct token lands in one of `dimension` buckets with a +1/-1 sign
    and is weighted by its count. Output vectors have unit length (or are all
    zeros for text with no word tokens), so a dot product is a cosine
    similarity. No model calls are made, which keeps rankings reproducible.
    """

    def __init__(self, dimension: int = 2048) -> None:
        if dimension < 1:
            raise ValueError("dimension must be >= 1")
        self.dimension = dimension

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self.embed_query(text) for text in texts]

    def embed_query(self, text: str) -> list[float]:
        vector = [0.0] * self.dimension
        for token, count in Counter(_WORD_PATTERN.findall(text.lower())).items():
            bucket, sign = _feature(token, self.dimension)
            vector[bucket] += sign * count
        return unit_vector(vector)


@lru_cache(maxsize=8192)
def _feature(token: str, dimension: int) -> tuple[int, float]:
    digest = blake2b(token.encode("utf-8"), digest_size=8).digest()
    bucket = int.from_bytes(digest[:4], "little") % dimension
    return bucket, (-1.0 if digest[4] & 1 else 1.0)


def unit_vector(vector: list[float]) -> list[float]:
    """Scale `vector` to length 1. A zero vector is returned unchanged."""
    norm = sqrt(sum(value * value for value in vector))
    if norm == 0.0:
        return vector
    return [value / norm for value in vector]
