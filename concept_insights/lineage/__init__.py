"""
Lineage - Provenance from Conclusions to Raw Data

Traces, trees, paths and edges over the metric hierarchy.
"""

from .schemas import (
    DataTrace,
    EdgeType,
    LineageEdge,
    LineageNode,
    LineagePath,
    PathStep,
    RawDataSource
)
from .tracer import LineageTracer

__all__ = [
    "DataTrace",
    "EdgeType",
    "LineageEdge",
    "LineageNode",
    "LineagePath",
    "PathStep",
    "RawDataSource",
    "LineageTracer"
]
