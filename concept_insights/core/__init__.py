"""Core data model, hierarchy traversal and error taxonomy."""

from .entities import (
    Argumentation,
    DataPoint,
    DataSource,
    DataSourceType,
    Evidence,
    LogicChain,
    MetricHierarchyNode,
    NodeKind,
    SourceType,
    StrengthLevel,
    SupportingData,
    SupportingDataType,
    Trend,
)
from .errors import (
    CycleDetectedError,
    InsightError,
    NotFoundError,
    NotInitializedError,
    ValidationError,
)
from .hierarchy import collect_data_points, find_node, validate_hierarchy, walk

__all__ = [
    "Argumentation",
    "DataPoint",
    "DataSource",
    "DataSourceType",
    "Evidence",
    "LogicChain",
    "MetricHierarchyNode",
    "NodeKind",
    "SourceType",
    "StrengthLevel",
    "SupportingData",
    "SupportingDataType",
    "Trend",
    "CycleDetectedError",
    "InsightError",
    "NotFoundError",
    "NotInitializedError",
    "ValidationError",
    "collect_data_points",
    "find_node",
    "validate_hierarchy",
    "walk",
]
