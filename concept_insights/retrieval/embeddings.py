"""
Embedding Generation for Semantic Retrieval

This module provides:
- Token-hashing embeddings behind the LangChain ``Embeddings`` interface
- Vector helpers (L2 normalization, cosine similarity)
- An immutable in-memory embedding index searched by cosine similarity

The hash embedding is simple and swappable. Any replacement
must keep the same contract: fixed dimension, deterministic output,
L2-normalized vectors, so the similarity math downstream is unaffected.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence
import math

from langchain_core.embeddings import Embeddings

from ..core.errors import ValidationError


DEFAULT_DIMENSIONS = 384


def tokenize(text: str) -> list[str]:
    """Lowercase whitespace tokens."""
    return text.lower().split()


def hash_token(token: str) -> int:
    """
    Rolling 32-bit string hash: h = 31 * h + code, wrapped to a signed
    32-bit integer, absolute value returned.
    """
    h = 0
    for char in token:
        h = (h * 31 + ord(char)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def l2_normalize(vector: Sequence[float]) -> list[float]:
    """Scale to unit length; the zero vector stays zero."""
    magnitude = math.sqrt(sum(x * x for x in vector))
    if magnitude == 0:
        return list(vector)
    return [x / magnitude for x in vector]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """dot(a, b) / (|a| |b|), defined as 0 when either magnitude is 0."""
    if len(a) != len(b):
        raise ValidationError(
            f"Vectors must have same dimensions ({len(a)} != {len(b)})"
        )

    dot_product = sum(x * y for x, y in zip(a, b))
    magnitude_a = math.sqrt(sum(x * x for x in a))
    magnitude_b = math.sqrt(sum(x * x for x in b))

    if magnitude_a == 0 or magnitude_b == 0:
        return 0.0

    return dot_product / (magnitude_a * magnitude_b)


class HashEmbeddings(Embeddings):
    """
    Bag-of-words embeddings with the hashing trick.

    Each token is hashed into one of ``dimensions`` buckets, bucket counts
    are accumulated and the vector is L2-normalized. Collisions are an
    accepted approximation.
    """

    def __init__(self, dimensions: int = DEFAULT_DIMENSIONS):
        if dimensions <= 0:
            raise ValidationError(f"Embedding dimension must be positive, got {dimensions}")
        self.dimensions = dimensions

    def embed_query(self, text: str) -> list[float]:
        vector = [0.0] * self.dimensions
        for token in tokenize(text):
            vector[hash_token(token) % self.dimensions] += 1.0
        return l2_normalize(vector)

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self.embed_query(text) for text in texts]


@dataclass(frozen=True)
class VectorDocument:
    """An indexed record: its text, embedding and retrieval metadata."""
    id: str
    text: str
    embedding: tuple
    metadata: dict = field(default_factory=dict)


class EmbeddingIndex:
    """
    Immutable in-memory embedding index.

    Built once from a complete list of documents; re-indexing builds a new
    index rather than mutating this one, so a reader holding a reference
    always sees a consistent document set.
    """

    def __init__(self, documents: Sequence[VectorDocument] = (), dimensions: int = DEFAULT_DIMENSIONS):
        self._documents = tuple(documents)
        self.dimensions = dimensions

    @property
    def documents(self) -> tuple:
        return self._documents

    def search(
        self,
        query_embedding: Sequence[float],
        top_k: int = 5,
        filter_fn: Optional[Callable[[VectorDocument], bool]] = None
    ) -> list[tuple[VectorDocument, float]]:
        """
        Score every document against the query.

        Returns (document, similarity) pairs, most similar first. The sort
        is stable, so equal similarities keep index order.
        """
        scores = []

        for document in self._documents:
            if filter_fn and not filter_fn(document):
                continue

            similarity = cosine_similarity(query_embedding, document.embedding)
            scores.append((document, similarity))

        scores.sort(key=lambda x: x[1], reverse=True)

        return scores[:top_k]

    def __len__(self) -> int:
        return len(self._documents)
