"""
Retrieval-Augmented Query Engine

Answers free-text questions over indexed simulation artifacts (survey
answers, interview transcripts, metric insights):
- Text extraction with a fallback chain per record
- Batched embedding through a LangChain ``Embeddings`` provider
- Cosine-similarity search over an in-memory index
- Answer synthesis citing sample sizes and source types

Lifecycle: create -> initialize -> query -> dispose. Indexing is the only
asynchronous boundary; queries are synchronous and always read one complete
snapshot of the index, even while a re-index is in flight.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Sequence, Union
import asyncio
import json
import logging

from ..config.settings import RetrievalConfig, get_settings
from ..config.providers import get_embeddings
from ..core.errors import NotInitializedError, ValidationError
from ..core.utils import align_datetime, parse_datetime, pick, round_half_up
from .embeddings import EmbeddingIndex, VectorDocument, l2_normalize
from .schemas import QueryFilters, RAGQuery, RAGResult, RetrievedSource

logger = logging.getLogger(__name__)


RELATED_QUESTIONS = (
    "Is this conclusion consistent across persona segments?",
    "What are the main factors driving this conclusion?",
    "How much data supports this conclusion?",
)

# Record fields tried in order before falling back to JSON
_TEXT_FIELDS = ("text", "answer", "insight")


class EngineState(Enum):
    """Lifecycle state of the retrieval engine."""
    UNINITIALIZED = "uninitialized"
    INDEXING = "indexing"
    READY = "ready"


def extract_text(record: Any) -> str:
    """Textual payload of a record: text -> answer -> insight -> JSON."""
    if isinstance(record, str):
        return record
    if isinstance(record, Mapping):
        for key in _TEXT_FIELDS:
            value = record.get(key)
            if value:
                return str(value)
    return json.dumps(record, default=str, ensure_ascii=False)


class RAGEngine:
    """
    Retrieval engine over simulation records.

    Design principles:
    - Retrieve before answering
    - Attribute every answer to its sources
    - Publish re-built indexes in one step, never partially
    """

    def __init__(
        self,
        embeddings=None,
        config: RetrievalConfig = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.config = config or get_settings().retrieval
        self._embeddings = embeddings or get_embeddings(dimensions=self.config.dimensions)
        self._clock = clock

        self._index: Optional[EmbeddingIndex] = None
        self._state = EngineState.UNINITIALIZED
        self._index_lock = asyncio.Lock()

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._index is not None

    @property
    def document_count(self) -> int:
        return len(self._index) if self._index is not None else 0

    @property
    def documents(self) -> tuple:
        """Snapshot of the currently published documents."""
        return self._index.documents if self._index is not None else ()

    async def initialize(self, records: Sequence[Any]) -> None:
        """Build the index for the first time."""
        logger.info("Initializing RAG engine with %d records", len(records))
        await self.index(records)
        logger.info("RAG engine initialization complete")

    async def index(self, records: Sequence[Any]) -> None:
        """
        Re-build the index from ``records`` and publish it atomically.

        Queries issued meanwhile keep reading the previous snapshot (or fail
        with NotInitializedError if there is none yet).
        """
        async with self._index_lock:
            self._state = EngineState.INDEXING
            try:
                new_index = await self._build_index(records)
            except Exception:
                self._state = (
                    EngineState.READY if self._index is not None
                    else EngineState.UNINITIALIZED
                )
                raise

            self._index = new_index
            self._state = EngineState.READY

        logger.info("Indexed %d documents", len(new_index))

    def query(self, query: Union[str, RAGQuery], top_k: Optional[int] = None) -> RAGResult:
        """
        Answer a question from the most similar indexed documents.

        Raises NotInitializedError before the first index is published.
        An empty retrieval is not an error: confidence 0, no sources. That
        includes ``top_k=0``; a negative ``top_k`` raises ValidationError.
        """
        index = self._index
        if index is None:
            raise NotInitializedError("RAG engine not initialized")

        if isinstance(query, str):
            query = RAGQuery(query=query)

        top_k = self.config.default_top_k if top_k is None else top_k
        if top_k < 0:
            raise ValidationError(f"top_k must not be negative, got {top_k}")

        query_text = query.query
        if query.selected_text:
            query_text = f"{query_text} {query.selected_text}"

        logger.debug("Querying: %s", query.query)
        query_embedding = self._check_vector(self._embeddings.embed_query(query_text))

        top_docs = index.search(
            query_embedding,
            top_k=top_k,
            filter_fn=self._build_filter(query.filters)
        )

        logger.debug("Found %d relevant documents", len(top_docs))

        return RAGResult(
            answer=self._generate_answer(top_docs),
            sources=[self._to_source(doc, similarity) for doc, similarity in top_docs],
            confidence=self._calculate_confidence(top_docs),
            related_questions=list(RELATED_QUESTIONS),
            reasoning=(
                f"Based on {len(top_docs)} retrieved records, cross-validated "
                f"across {self._count_source_types(top_docs)} source types."
            )
        )

    def dispose(self) -> None:
        """Drop the index; the engine must be initialized again before use."""
        self._index = None
        self._state = EngineState.UNINITIALIZED
        logger.info("RAG engine disposed")

    async def _build_index(self, records: Sequence[Any]) -> EmbeddingIndex:
        texts = [extract_text(record) for record in records]
        embeddings = []

        batch_size = self.config.batch_size
        for i in range(0, len(texts), batch_size):
            batch = texts[i:i + batch_size]
            vectors = await self._embeddings.aembed_documents(batch)
            embeddings.extend(self._check_vector(v) for v in vectors)

        documents = [
            VectorDocument(
                id=self._document_id(record, position),
                text=text,
                embedding=tuple(embedding),
                metadata=self._document_metadata(record)
            )
            for position, (record, text, embedding) in enumerate(zip(records, texts, embeddings))
        ]

        return EmbeddingIndex(documents, dimensions=self.config.dimensions)

    def _check_vector(self, vector: Sequence[float]) -> list[float]:
        """Hold any embedding provider to the fixed-dimension, L2-normalized contract."""
        if len(vector) != self.config.dimensions:
            raise ValidationError(
                f"Embedding has dimension {len(vector)}, expected {self.config.dimensions}"
            )
        return l2_normalize(vector)

    def _document_id(self, record: Any, position: int) -> str:
        if isinstance(record, Mapping) and record.get("id") is not None:
            return str(record["id"])
        return f"vec_{position}"

    def _document_metadata(self, record: Any) -> dict:
        if not isinstance(record, Mapping):
            return {"type": "unknown", "source_id": None, "timestamp": self._clock()}

        metadata = {
            "type": record.get("type", "unknown"),
            "source_id": record.get("id"),
            "timestamp": parse_datetime(record.get("timestamp")) or self._clock(),
        }
        sample_size = pick(record, "sample_size", "sampleSize")
        if sample_size is not None:
            metadata["sample_size"] = sample_size

        metadata.update(record.get("metadata") or {})
        return metadata

    def _build_filter(self, filters: Optional[QueryFilters]):
        if filters is None:
            return None

        def matches(document: VectorDocument) -> bool:
            metadata = document.metadata
            if filters.type is not None and metadata.get("type") != filters.type:
                return False
            if filters.min_sample_size is not None:
                if self._sample_size(document) < filters.min_sample_size:
                    return False
            if filters.date_range is not None:
                start, end = filters.date_range
                timestamp = metadata.get("timestamp")
                if timestamp is None:
                    return False
                if not align_datetime(start, timestamp) <= timestamp <= align_datetime(end, timestamp):
                    return False
            return True

        return matches

    def _generate_answer(self, docs: list) -> str:
        """Summarize the evidence behind the retrieved documents."""
        sample_size = sum(self._sample_size(doc) for doc, _ in docs)
        source_count = self._count_source_types(docs)

        lines = [
            "This conclusion is supported by the following data:",
            "",
            "Supporting data:",
            f"- Sample size: {sample_size} records",
            f"- Data sources: {source_count} distinct source types",
            "",
            "Sources:",
        ]
        for i, (doc, similarity) in enumerate(docs, start=1):
            lines.append(
                f"- Source {i}: {doc.metadata.get('type', 'unknown')} "
                f"(relevance: {similarity * 100:.1f}%)"
            )

        return "\n".join(lines)

    def _to_source(self, doc: VectorDocument, similarity: float) -> RetrievedSource:
        limit = self.config.snippet_length
        text = doc.text if len(doc.text) <= limit else doc.text[:limit] + "..."
        return RetrievedSource(
            type=str(doc.metadata.get("type", "unknown")),
            id=str(doc.metadata.get("source_id") or doc.id),
            text=text,
            relevance_score=similarity,
            metadata=dict(doc.metadata)
        )

    def _calculate_confidence(self, docs: list) -> int:
        """Mean similarity as a 0-100 score."""
        if not docs:
            return 0
        average = sum(similarity for _, similarity in docs) / len(docs)
        return max(0, round_half_up(average * 100))

    def _count_source_types(self, docs: list) -> int:
        return len({doc.metadata.get("type") for doc, _ in docs})

    def _sample_size(self, doc: VectorDocument) -> int:
        return doc.metadata.get("sample_size") or 1
