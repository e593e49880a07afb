"""
Configuration Management

Centralized configuration for:
- Scoring tolerances and hybrid mixing
- Argumentation strength thresholds
- Retrieval index dimensions and batching
- Embedding providers (hash, OpenAI, sentence-transformers)
"""

from .settings import (
    Settings,
    ScoringConfig,
    ArgumentationConfig,
    RetrievalConfig,
    EmbeddingConfig,
    EmbeddingProviderType,
    get_settings
)
from .providers import (
    EmbeddingProvider,
    get_embeddings
)

__all__ = [
    "Settings",
    "ScoringConfig",
    "ArgumentationConfig",
    "RetrievalConfig",
    "EmbeddingConfig",
    "EmbeddingProviderType",
    "get_settings",
    "EmbeddingProvider",
    "get_embeddings"
]
