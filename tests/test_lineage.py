"""
Tests for the lineage tracer.

Validates conclusion traces, lineage tree projection, one-hop paths, edge
listing and the handling of malformed hierarchies.
"""

import pytest

from concept_insights.argumentation import ArgumentationCalculator
from concept_insights.core import (
    CycleDetectedError,
    DataPoint,
    MetricHierarchyNode,
    NodeKind,
    NotFoundError,
    SourceType,
)
from concept_insights.lineage import EdgeType, LineageTracer


@pytest.fixture
def tracer(hierarchy):
    return LineageTracer(hierarchy)


class TestTraceConclusion:
    """Tests for tracing a node back to its raw data."""

    def test_trace_root(self, tracer):
        trace = tracer.trace_conclusion("conclusion")

        assert trace.conclusion == "Concept appeal"
        assert trace.intermediate_metrics == ["Purchase intent", "Brand trust"]
        assert [s.id for s in trace.raw_data_sources] == [
            "panel-summary", "survey-q1", "interview-1", "sim-1", "txn-1"
        ]
        assert trace.total_count == 475

    def test_count_equals_sum_of_sample_sizes(self, tracer, hierarchy):
        trace = tracer.trace_conclusion("metric-a")

        assert trace.intermediate_metrics == ["Quality signal"]
        assert trace.total_count == 300 + 20 + 100
        assert trace.raw_data_sources[1].type == "interview"

    def test_leaf_metric(self, tracer):
        trace = tracer.trace_conclusion("metric-b")
        assert trace.intermediate_metrics == []
        assert trace.total_count == 50

    def test_unrecorded_sample_counts_as_one(self):
        node = MetricHierarchyNode(
            id="m",
            level=2,
            name="Sparse metric",
            data_points=[
                DataPoint("x", SourceType.SURVEY, 0),
                DataPoint("y", SourceType.INTERVIEW, 4),
            ]
        )

        trace = LineageTracer(node).trace_conclusion("m")

        assert [s.count for s in trace.raw_data_sources] == [1, 4]
        assert trace.total_count == 5

    def test_unknown_id(self, tracer):
        with pytest.raises(NotFoundError) as exc_info:
            tracer.trace_conclusion("missing")
        assert "missing" in str(exc_info.value)


class TestLineageTree:
    """Tests for projecting the hierarchy into a lineage tree."""

    def test_structure(self, tracer):
        tree = tracer.build_lineage_tree("conclusion")

        assert tree.type == NodeKind.CONCLUSION
        assert [(c.id, c.type) for c in tree.children] == [
            ("metric-a", NodeKind.METRIC),
            ("metric-b", NodeKind.METRIC),
            ("panel-summary", NodeKind.DATA),
        ]

        intent = tree.children[0]
        assert [c.id for c in intent.children] == ["metric-a-quality", "survey-q1", "interview-1"]
        assert intent.metadata["aggregation_method"] == "weighted_sum"
        assert intent.metadata["level"] == 2

    def test_data_leaves(self, tracer):
        leaf = tracer.build_lineage_tree("metric-b").children[0]

        assert leaf.type == NodeKind.DATA
        assert leaf.value == 50
        assert leaf.source == "txn-1"
        assert leaf.metadata["source_type"] == "transaction"
        assert leaf.children == []

    def test_missing_aggregation_method_defaults(self, tracer):
        tree = tracer.build_lineage_tree("conclusion")
        assert tree.metadata["aggregation_method"] == "aggregate"

    def test_strength_carried_from_annotated_tree(self, hierarchy, clock):
        annotated = ArgumentationCalculator(clock=clock).annotate_hierarchy(hierarchy)

        tree = LineageTracer(annotated).build_lineage_tree("conclusion")

        assert tree.metadata["strength"] == "strong"
        assert tree.metadata["confidence"] == annotated.argumentation.confidence

    def test_unknown_id(self, tracer):
        with pytest.raises(NotFoundError):
            tracer.build_lineage_tree("missing")


class TestFindPath:
    """Tests for one-hop path finding."""

    def test_direct_child(self, tracer):
        path = tracer.find_path("conclusion", "metric-b")

        assert [step.node_id for step in path.path] == ["conclusion", "metric-a", "metric-b"]
        assert path.path[0].transformation is None
        assert path.path[1].transformation == "weighted_sum"
        assert path.path[2].transformation == "aggregate"
        assert path.reaches_target

    def test_grandchild_not_reached(self, tracer):
        path = tracer.find_path("conclusion", "metric-a-quality")

        assert len(path.path) == 3
        assert not path.reaches_target

    def test_self_path(self, tracer):
        assert tracer.find_path("metric-b", "metric-b").reaches_target

    @pytest.mark.parametrize("from_id,to_id", [
        ("missing", "metric-a"),
        ("conclusion", "missing"),
    ])
    def test_unknown_endpoint(self, tracer, from_id, to_id):
        with pytest.raises(NotFoundError):
            tracer.find_path(from_id, to_id)

    def test_serializes_endpoints(self, tracer):
        payload = tracer.find_path("conclusion", "metric-a").model_dump(by_alias=True)

        assert payload["from"] == "conclusion"
        assert payload["to"] == "metric-a"
        assert payload["reachesTarget"] is True


class TestLineageEdges:
    """Tests for edge listing."""

    def test_edges_in_pre_order(self, tracer):
        edges = tracer.lineage_edges("conclusion")

        assert [e.id for e in edges] == [
            "conclusion->metric-a",
            "conclusion->metric-b",
            "conclusion->panel-summary",
            "metric-a->metric-a-quality",
            "metric-a->survey-q1",
            "metric-a->interview-1",
            "metric-a-quality->sim-1",
            "metric-b->txn-1",
        ]

    def test_edge_types_and_labels(self, tracer):
        edges = {e.id: e for e in tracer.lineage_edges("conclusion")}

        assert edges["conclusion->metric-a"].type == EdgeType.AGGREGATION
        assert edges["conclusion->metric-a"].label == "weighted_sum"
        assert edges["metric-a->metric-a-quality"].label == "weighted"
        assert edges["metric-b->txn-1"].type == EdgeType.DIRECT
        assert edges["metric-b->txn-1"].label is None


class TestMalformedHierarchies:
    """Tests for cycles, duplicate ids and forests."""

    def test_cycle_rejected(self, hierarchy):
        hierarchy.children[0].children[0].children.append(hierarchy.children[0])

        with pytest.raises(CycleDetectedError):
            LineageTracer(hierarchy)

    def test_duplicate_ids_flagged(self):
        first = MetricHierarchyNode(id="dup", level=1, name="First")
        second = MetricHierarchyNode(id="dup", level=1, name="Second")

        tracer = LineageTracer([first, second])

        assert tracer.duplicate_ids == ["dup"]
        assert tracer.trace_conclusion("dup").conclusion == "First"

    def test_forest(self, hierarchy):
        other = MetricHierarchyNode(id="other", level=1, name="Other conclusion")

        tracer = LineageTracer([hierarchy, other])

        assert "other" in tracer
        assert "metric-a-quality" in tracer
        assert tracer.duplicate_ids == []
