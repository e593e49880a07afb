"""
Settings Management with Pydantic

Provides type-safe configuration management with:
- Environment variable support
- Validation
- Per-component configuration sections
"""

from enum import Enum
from typing import Optional
from functools import lru_cache

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EmbeddingProviderType(str, Enum):
    """Supported embedding providers."""
    HASH = "hash"
    OPENAI = "openai"
    SENTENCE_TRANSFORMERS = "sentence_transformers"


class ScoringConfig(BaseSettings):
    """Rule/hybrid scoring configuration."""
    model_config = SettingsConfigDict(
        env_prefix="SCORING_",
        extra="ignore"
    )

    # Allowed deviation of a weight set from 1.0
    weight_tolerance: float = Field(default=0.01, ge=0.0, le=0.5)
    default_mixing_ratio: float = Field(default=0.5, ge=0.0, le=1.0)


class ArgumentationConfig(BaseSettings):
    """Evidence strength grading configuration."""
    model_config = SettingsConfigDict(
        env_prefix="ARGUMENTATION_",
        extra="ignore"
    )

    strong_threshold: float = 70.0
    moderate_threshold: float = 40.0
    recent_days: float = 30.0
    stale_days: float = 90.0

    @model_validator(mode="after")
    def check_thresholds(self) -> "ArgumentationConfig":
        if not 0 <= self.moderate_threshold < self.strong_threshold <= 100:
            raise ValueError("thresholds must satisfy 0 <= moderate < strong <= 100")
        if not 0 < self.recent_days < self.stale_days:
            raise ValueError("recency windows must satisfy 0 < recent_days < stale_days")
        return self


class RetrievalConfig(BaseSettings):
    """Vector index and query configuration."""
    model_config = SettingsConfigDict(
        env_prefix="RETRIEVAL_",
        extra="ignore"
    )

    dimensions: int = Field(default=384, gt=0)
    default_top_k: int = Field(default=5, gt=0)
    batch_size: int = Field(default=256, gt=0)
    snippet_length: int = Field(default=200, gt=0)


class EmbeddingConfig(BaseSettings):
    """Embedding configuration."""
    model_config = SettingsConfigDict(
        env_prefix="EMBEDDING_",
        extra="ignore"
    )

    provider: EmbeddingProviderType = EmbeddingProviderType.HASH
    model_name: str = "text-embedding-3-small"

    # For sentence-transformers
    sentence_transformer_model: str = "all-MiniLM-L6-v2"

    openai_api_key: Optional[SecretStr] = Field(default=None, alias="OPENAI_API_KEY")


class Settings(BaseSettings):
    """Main application settings."""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Application
    app_name: str = "Concept Insights"
    log_level: str = "INFO"

    # Sub-configurations
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    argumentation: ArgumentationConfig = Field(default_factory=ArgumentationConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings from environment variables."""
        return cls(
            scoring=ScoringConfig(),
            argumentation=ArgumentationConfig(),
            retrieval=RetrievalConfig(),
            embedding=EmbeddingConfig()
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()
