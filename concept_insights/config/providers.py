"""
Embedding Provider Factory

Provides a unified LangChain ``Embeddings`` interface for:
- Hash embeddings (deterministic, no external service)
- OpenAI embeddings
- Sentence Transformers (local)

Whatever the provider, the retrieval engine holds it to the same contract:
fixed dimension, deterministic output, L2-normalized vectors.
"""

from .settings import (
    EmbeddingConfig,
    EmbeddingProviderType,
    get_settings
)


class EmbeddingProvider:
    """
    Factory for embedding models.

    Supports:
    - Hash embeddings (default)
    - OpenAI embeddings
    - Sentence Transformers (local, via HuggingFace)
    """

    def __init__(self, config: EmbeddingConfig = None, dimensions: int = None):
        settings = get_settings()
        self.config = config or settings.embedding
        self.dimensions = dimensions or settings.retrieval.dimensions
        self._embeddings = None

    def get_embeddings(self):
        """Get embedding model instance (lazy initialization)."""
        if self._embeddings is None:
            self._embeddings = self._create_embeddings()
        return self._embeddings

    def _create_embeddings(self):
        """Create embedding model based on configuration."""
        provider = self.config.provider

        if provider == EmbeddingProviderType.HASH:
            return self._create_hash_embeddings()
        elif provider == EmbeddingProviderType.OPENAI:
            return self._create_openai_embeddings()
        elif provider == EmbeddingProviderType.SENTENCE_TRANSFORMERS:
            return self._create_sentence_transformer_embeddings()
        else:
            raise ValueError(f"Unsupported embedding provider: {provider}")

    def _create_hash_embeddings(self):
        """Create token-hashing embeddings."""
        from ..retrieval.embeddings import HashEmbeddings

        return HashEmbeddings(dimensions=self.dimensions)

    def _create_openai_embeddings(self):
        """Create OpenAI embeddings."""
        try:
            from langchain_openai import OpenAIEmbeddings

            api_key = self.config.openai_api_key
            if api_key:
                api_key = api_key.get_secret_value()

            return OpenAIEmbeddings(
                model=self.config.model_name,
                dimensions=self.dimensions,
                api_key=api_key
            )
        except ImportError:
            raise ImportError("Install langchain-openai: pip install langchain-openai")

    def _create_sentence_transformer_embeddings(self):
        """Create Sentence Transformer embeddings (local)."""
        try:
            from langchain_community.embeddings import HuggingFaceEmbeddings

            return HuggingFaceEmbeddings(
                model_name=self.config.sentence_transformer_model,
                model_kwargs={'device': 'cpu'},
                encode_kwargs={'normalize_embeddings': True}
            )
        except ImportError:
            raise ImportError(
                "Install sentence-transformers: pip install langchain-community sentence-transformers"
            )


def get_embeddings(config: EmbeddingConfig = None, dimensions: int = None):
    """Get embedding model instance."""
    return EmbeddingProvider(config, dimensions).get_embeddings()
