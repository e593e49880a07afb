"""
Tests for the retrieval engine.

Validates the engine lifecycle, text extraction, filtering, answer
synthesis and atomic re-indexing. Async entry points are driven with
``asyncio.run``.
"""

import asyncio
from datetime import datetime, timezone

import pytest

from concept_insights.config import RetrievalConfig
from concept_insights.core import NotInitializedError, ValidationError
from concept_insights.core.utils import round_half_up
from concept_insights.retrieval import (
    RELATED_QUESTIONS,
    EngineState,
    HashEmbeddings,
    QueryFilters,
    RAGEngine,
    RAGQuery,
    extract_text,
)


NOW = datetime(2026, 10, 19, 12, 0, 0)

RECORDS = [
    {"id": "r1", "type": "survey", "text": "price is too high", "sampleSize": 100,
     "timestamp": "2026-10-10T09:00:00"},
    {"id": "r2", "type": "interview", "text": "love the packaging design", "sample_size": 10,
     "timestamp": "2026-09-01T09:00:00"},
    {"id": "r3", "type": "survey", "answer": "completely unrelated words here"},
]


class GatedEmbeddings(HashEmbeddings):
    """Hash embeddings whose batch calls wait on an optional gate."""

    def __init__(self, dimensions=384):
        super().__init__(dimensions)
        self.gate = None
        self.batches = []

    async def aembed_documents(self, texts):
        self.batches.append(list(texts))
        if self.gate is not None:
            await self.gate.wait()
        return self.embed_documents(texts)


def build_engine(records, config=None, embeddings=None):
    async def setup():
        engine = RAGEngine(
            embeddings or HashEmbeddings(),
            config or RetrievalConfig(),
            clock=lambda: NOW
        )
        await engine.initialize(records)
        return engine

    return asyncio.run(setup())


@pytest.fixture
def engine():
    return build_engine(RECORDS)


class TestExtractText:
    """Tests for the per-record text fallback chain."""

    @pytest.mark.parametrize("record,expected", [
        ("plain string", "plain string"),
        ({"text": "t", "answer": "a", "insight": "i"}, "t"),
        ({"answer": "a", "insight": "i"}, "a"),
        ({"text": "", "insight": "i"}, "i"),
        ({"score": 1}, '{"score": 1}'),
    ])
    def test_fallback_order(self, record, expected):
        assert extract_text(record) == expected


class TestLifecycle:
    """Tests for engine states."""

    def test_query_before_initialize(self):
        engine = RAGEngine(HashEmbeddings(), RetrievalConfig())

        assert engine.state == EngineState.UNINITIALIZED
        with pytest.raises(NotInitializedError):
            engine.query("price")

    def test_ready_after_initialize(self, engine):
        assert engine.state == EngineState.READY
        assert engine.is_ready
        assert engine.document_count == 3

    def test_dispose(self, engine):
        engine.dispose()

        assert engine.state == EngineState.UNINITIALIZED
        assert engine.documents == ()
        with pytest.raises(NotInitializedError):
            engine.query("price")

    def test_empty_corpus(self):
        engine = build_engine([])

        result = engine.query("anything at all")

        assert result.confidence == 0
        assert result.sources == []
        assert len(result.related_questions) == 3
        assert "Sample size: 0 records" in result.answer

    def test_dimension_mismatch_leaves_engine_uninitialized(self):
        engine = RAGEngine(HashEmbeddings(8), RetrievalConfig())

        with pytest.raises(ValidationError):
            asyncio.run(engine.initialize(RECORDS))
        assert engine.state == EngineState.UNINITIALIZED
        assert not engine.is_ready

    def test_embeddings_requested_in_batches(self):
        embeddings = GatedEmbeddings()
        records = [{"id": f"r{i}", "text": f"record {i}"} for i in range(5)]

        engine = build_engine(records, RetrievalConfig(batch_size=2), embeddings)

        assert [len(batch) for batch in embeddings.batches] == [2, 2, 1]
        assert engine.document_count == 5


class TestIndexing:
    """Tests for document ids and metadata."""

    def test_ids_default_to_position(self):
        engine = build_engine(["plain string", {"text": "no id"}, {"id": 7, "text": "numbered"}])
        assert [doc.id for doc in engine.documents] == ["vec_0", "vec_1", "7"]

    def test_metadata(self, engine):
        first, _, third = engine.documents

        assert first.metadata["type"] == "survey"
        assert first.metadata["source_id"] == "r1"
        assert first.metadata["sample_size"] == 100
        assert first.metadata["timestamp"] == datetime(2026, 10, 10, 9, 0)
        assert "sample_size" not in third.metadata
        assert third.metadata["timestamp"] == NOW

    def test_record_metadata_merged(self):
        engine = build_engine([{"id": "x", "text": "t", "metadata": {"segment": "premium"}}])
        assert engine.documents[0].metadata["segment"] == "premium"

    def test_embeddings_are_normalized(self, engine):
        for doc in engine.documents:
            assert len(doc.embedding) == 384
            assert sum(x * x for x in doc.embedding) == pytest.approx(1.0)


class TestQuery:
    """Tests for retrieval and answer synthesis."""

    def test_best_match_first(self, engine):
        result = engine.query("price too high", top_k=3)

        assert result.sources[0].id == "r1"
        assert result.sources[0].relevance_score > 0.5
        scores = [s.relevance_score for s in result.sources]
        assert scores == sorted(scores, reverse=True)

    def test_confidence_is_mean_relevance(self, engine):
        result = engine.query("price too high", top_k=3)

        mean = sum(s.relevance_score for s in result.sources) / len(result.sources)
        assert result.confidence == max(0, round_half_up(mean * 100))

    def test_answer_summarizes_sources(self, engine):
        result = engine.query("price too high", top_k=3)

        assert "Sample size: 111 records" in result.answer
        assert "2 distinct source types" in result.answer
        assert "Source 1: survey" in result.answer
        assert result.related_questions == list(RELATED_QUESTIONS)
        assert "3 retrieved records" in result.reasoning

    def test_top_k_limits_sources(self, engine):
        assert len(engine.query("price", top_k=1).sources) == 1

    def test_default_top_k_from_config(self):
        records = [{"id": f"r{i}", "text": "same text"} for i in range(10)]
        engine = build_engine(records, RetrievalConfig(default_top_k=4))
        assert len(engine.query("same text").sources) == 4

    def test_zero_top_k_is_empty_retrieval(self, engine):
        result = engine.query("price too high", top_k=0)

        assert result.sources == []
        assert result.confidence == 0
        assert len(result.related_questions) == 3

    def test_negative_top_k(self, engine):
        with pytest.raises(ValidationError):
            engine.query("price", top_k=-1)

    def test_selected_text_joins_query(self, engine):
        result = engine.query(RAGQuery(query="", selected_text="packaging design"), top_k=1)
        assert result.sources[0].id == "r2"

    def test_type_filter(self, engine):
        query = RAGQuery(query="price", filters=QueryFilters(type="interview"))
        assert [s.id for s in engine.query(query).sources] == ["r2"]

    def test_min_sample_size_filter(self, engine):
        query = RAGQuery(query="price", filters=QueryFilters(min_sample_size=50))
        assert [s.id for s in engine.query(query).sources] == ["r1"]

    def test_date_range_filter(self, engine):
        window = (datetime(2026, 10, 1), datetime(2026, 10, 31))
        query = RAGQuery(query="design", filters=QueryFilters(date_range=window))
        assert sorted(s.id for s in engine.query(query).sources) == ["r1", "r3"]

    def test_date_range_filter_mixed_timezones(self):
        engine = build_engine([
            {"id": "aware", "text": "price", "timestamp": "2026-10-10T09:00:00Z"},
            {"id": "naive", "text": "price", "timestamp": "2026-10-10T09:00:00"},
        ])
        naive_window = (datetime(2026, 10, 1), datetime(2026, 10, 31))
        aware_window = (
            datetime(2026, 10, 1, tzinfo=timezone.utc),
            datetime(2026, 10, 31, tzinfo=timezone.utc),
        )

        for window in (naive_window, aware_window):
            query = RAGQuery(query="price", filters=QueryFilters(date_range=window))
            assert sorted(s.id for s in engine.query(query).sources) == ["aware", "naive"]

    def test_zero_sample_size_counts_as_one(self):
        engine = build_engine([
            {"id": "z", "type": "survey", "text": "price", "sampleSize": 0},
            {"id": "n", "type": "survey", "text": "price", "sampleSize": 4},
        ])

        result = engine.query("price", top_k=2)

        assert "Sample size: 5 records" in result.answer

    def test_long_text_truncated(self):
        engine = build_engine([{"id": "long", "text": "word " * 100}])

        source = engine.query("word").sources[0]

        assert len(source.text) == 203
        assert source.text.endswith("...")

    def test_result_serializes_camel_case(self, engine):
        payload = engine.query("price", top_k=1).model_dump(by_alias=True)

        assert "relatedQuestions" in payload
        assert "relevanceScore" in payload["sources"][0]

    def test_citation(self, engine):
        source = engine.query("price too high", top_k=1).sources[0]
        assert source.to_citation() == "[Source: r1 (survey)]"


class TestReindex:
    """Tests for publishing a re-built index in one step."""

    def test_queries_read_previous_snapshot(self):
        async def scenario():
            embeddings = GatedEmbeddings()
            engine = RAGEngine(embeddings, RetrievalConfig())
            await engine.initialize([{"id": "old", "text": "old survey answer"}])

            embeddings.gate = asyncio.Event()
            task = asyncio.create_task(engine.index([
                {"id": "new-1", "text": "new interview"},
                {"id": "new-2", "text": "another interview"},
            ]))
            await asyncio.sleep(0)

            during = (engine.state, [s.id for s in engine.query("survey").sources])

            embeddings.gate.set()
            await task
            after = (engine.state, [s.id for s in engine.query("interview").sources])
            return during, after

        during, after = asyncio.run(scenario())

        assert during == (EngineState.INDEXING, ["old"])
        assert after == (EngineState.READY, ["new-1", "new-2"])

    def test_query_during_first_index_fails(self):
        async def scenario():
            embeddings = GatedEmbeddings()
            embeddings.gate = asyncio.Event()
            engine = RAGEngine(embeddings, RetrievalConfig())

            task = asyncio.create_task(engine.initialize(RECORDS))
            await asyncio.sleep(0)
            try:
                with pytest.raises(NotInitializedError):
                    engine.query("price")
            finally:
                embeddings.gate.set()
                await task
            return engine

        engine = asyncio.run(scenario())
        assert engine.document_count == 3
