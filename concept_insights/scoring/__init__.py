"""
Scoring Engine - Rule and Hybrid Evaluation

Turns persona context signals into metric values and builds the
conclusion -> metric -> signal hierarchy from them.
"""

from .rules import (
    AggregationMethod,
    Condition,
    ConditionalRule,
    LinearRule,
    RuleSet,
    ScoreBand,
    ScoreThresholds,
    ScoringMode
)
from .engine import (
    BatchError,
    BatchScoringResult,
    MetricScore,
    ScoredResult,
    ScoringEngine
)
from .hierarchy import HierarchyBuilder, build_hierarchy

__all__ = [
    "AggregationMethod",
    "Condition",
    "ConditionalRule",
    "LinearRule",
    "RuleSet",
    "ScoreBand",
    "ScoreThresholds",
    "ScoringMode",
    "BatchError",
    "BatchScoringResult",
    "MetricScore",
    "ScoredResult",
    "ScoringEngine",
    "HierarchyBuilder",
    "build_hierarchy"
]
