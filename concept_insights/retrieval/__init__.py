"""
Retrieval - RAG-style Search over Simulation Artifacts

Hash embeddings, cosine-similarity search and answer synthesis.
"""

from .embeddings import (
    EmbeddingIndex,
    HashEmbeddings,
    VectorDocument,
    cosine_similarity,
    hash_token,
    l2_normalize,
    tokenize
)
from .schemas import QueryFilters, RAGQuery, RAGResult, RetrievedSource
from .rag import RAGEngine, EngineState, RELATED_QUESTIONS, extract_text

__all__ = [
    "EmbeddingIndex",
    "HashEmbeddings",
    "VectorDocument",
    "cosine_similarity",
    "hash_token",
    "l2_normalize",
    "tokenize",
    "QueryFilters",
    "RAGQuery",
    "RAGResult",
    "RetrievedSource",
    "RAGEngine",
    "EngineState",
    "RELATED_QUESTIONS",
    "extract_text"
]
