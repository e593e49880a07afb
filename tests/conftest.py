"""Shared fixtures for the analytics core tests."""

from datetime import datetime, timedelta

import pytest

from concept_insights.config import ArgumentationConfig, RetrievalConfig, ScoringConfig
from concept_insights.core import DataPoint, MetricHierarchyNode, SourceType


NOW = datetime(2026, 10, 19, 12, 0, 0)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def scoring_config():
    return ScoringConfig()


@pytest.fixture
def argumentation_config():
    return ArgumentationConfig()


@pytest.fixture
def retrieval_config():
    return RetrievalConfig()


@pytest.fixture
def hierarchy():
    """
    conclusion (panel-summary)
    ├── metric-a  Purchase intent (survey-q1, interview-1)
    │   └── metric-a-quality  Quality signal (sim-1)
    └── metric-b  Brand trust (txn-1)
    """
    recent = NOW - timedelta(days=3)

    quality = MetricHierarchyNode(
        id="metric-a-quality",
        level=3,
        name="Quality signal",
        value=41.0,
        data_points=[DataPoint("sim-1", SourceType.SIMULATION, 100, recent)],
        aggregation_method="weighted"
    )
    intent = MetricHierarchyNode(
        id="metric-a",
        level=2,
        name="Purchase intent",
        value=66.0,
        data_points=[
            DataPoint("survey-q1", SourceType.SURVEY, 300, recent),
            DataPoint("interview-1", SourceType.INTERVIEW, 20, recent),
        ],
        children=[quality],
        aggregation_method="weighted_sum"
    )
    trust = MetricHierarchyNode(
        id="metric-b",
        level=2,
        name="Brand trust",
        value=58.0,
        data_points=[DataPoint("txn-1", SourceType.TRANSACTION, 50, recent)]
    )
    return MetricHierarchyNode(
        id="conclusion",
        level=1,
        name="Concept appeal",
        value=63.0,
        data_points=[DataPoint("panel-summary", SourceType.SURVEY, 5, recent)],
        children=[intent, trust],
        insight="Premium owners show the strongest intent"
    )
