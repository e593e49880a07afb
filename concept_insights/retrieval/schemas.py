"""
Pydantic Schemas for Retrieval Queries and Results

These are the shapes exchanged with the UI layer. Field names are
snake_case in Python and serialize to camelCase with ``by_alias=True``.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Schema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Query Schemas
# =============================================================================

class QueryFilters(_Schema):
    """Restrict the documents a query is scored against."""
    type: Optional[str] = Field(
        description="Only documents whose metadata type matches",
        default=None
    )
    min_sample_size: Optional[int] = Field(
        description="Only documents with at least this sample size",
        default=None,
        ge=0
    )
    date_range: Optional[Tuple[datetime, datetime]] = Field(
        description="Only documents timestamped inside this window (inclusive)",
        default=None
    )


class RAGQuery(_Schema):
    """A free-text question, optionally anchored to selected text."""
    query: str
    selected_text: Optional[str] = None
    context: str = ""
    filters: Optional[QueryFilters] = None


# =============================================================================
# Result Schemas
# =============================================================================

class RetrievedSource(_Schema):
    """A retrieved document cited by an answer."""
    type: str
    id: Optional[str] = None
    text: str
    relevance_score: float
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def to_citation(self) -> str:
        """Format as citation."""
        return f"[Source: {self.id} ({self.type})]"


class RAGResult(_Schema):
    """Answer to a conversational query, with the sources behind it."""
    answer: str
    sources: List[RetrievedSource] = Field(default_factory=list)
    confidence: int = Field(ge=0, le=100, default=0)
    related_questions: List[str] = Field(min_length=1)
    reasoning: str = ""
