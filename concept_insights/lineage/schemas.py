"""
Pydantic Schemas for Data Lineage

Read-only projections of the metric hierarchy used by lineage
visualizations. They are derived on demand and never the system of record.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..core.entities import NodeKind


class _Schema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EdgeType(str, Enum):
    """How data flows along a lineage edge."""
    AGGREGATION = "aggregation"
    FILTER = "filter"
    TRANSFORM = "transform"
    DIRECT = "direct"


class LineageNode(_Schema):
    """A node in a lineage tree."""
    id: str
    type: NodeKind
    label: str
    value: Optional[Any] = None
    source: Optional[str] = None
    children: List["LineageNode"] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class RawDataSource(_Schema):
    """A data point reached from a conclusion."""
    type: str
    id: str
    count: int


class DataTrace(_Schema):
    """Everything a conclusion rests on."""
    conclusion: str
    intermediate_metrics: List[str] = Field(default_factory=list)
    raw_data_sources: List[RawDataSource] = Field(default_factory=list)

    @property
    def total_count(self) -> int:
        return sum(source.count for source in self.raw_data_sources)


class PathStep(_Schema):
    node_id: str
    node_name: str
    transformation: Optional[str] = None


class LineagePath(_Schema):
    """
    One-hop path from a node through its direct children.

    ``reaches_target`` is False when ``to`` is further than one hop away;
    multi-hop search is not performed.
    """
    from_id: str = Field(alias="from")
    to_id: str = Field(alias="to")
    path: List[PathStep] = Field(default_factory=list)
    reaches_target: bool = False


class LineageEdge(_Schema):
    """An edge of a lineage graph."""
    id: str
    source: str
    target: str
    label: Optional[str] = None
    type: EdgeType = EdgeType.DIRECT


LineageNode.model_rebuild()
