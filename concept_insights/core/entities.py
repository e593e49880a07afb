"""
Core Insight Entities - Metric Hierarchy Data Model

This module defines the records shared by every analytics component. The
host application owns the dataset; the components only read it.

Entities:
- DataPoint: leaf-level evidence, immutable once created
- DataSource: a question, interview, simulation or transaction feed
- Evidence / SupportingData: claims and the data backing them
- LogicChain: premise -> reasoning -> conclusion
- Argumentation: strength/confidence rating attached to a metric node
- MetricHierarchyNode: 3-level tree of conclusion -> metrics -> data

Every record exposes ``from_dict`` so host JSON (camelCase keys, ISO-8601
timestamps) can be fed in directly.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional, Union

from .errors import ValidationError
from .utils import parse_datetime, pick


class SourceType(Enum):
    """Where a data point was collected."""
    SURVEY = "survey"
    INTERVIEW = "interview"
    SIMULATION = "simulation"
    TRANSACTION = "transaction"


class DataSourceType(Enum):
    """Type of a data source cited by an argumentation."""
    QUESTION = "question"
    INTERVIEW = "interview"
    SIMULATION = "simulation"
    TRANSACTION = "transaction"


# Host records label survey-question sources "survey"
_DATA_SOURCE_ALIASES = {"survey": "question"}


class SupportingDataType(Enum):
    STATISTIC = "statistic"
    QUOTE = "quote"
    CORRELATION = "correlation"
    TREND = "trend"


class StrengthLevel(Enum):
    """Evidence strength label rendered as a badge."""
    STRONG = "strong"
    MODERATE = "moderate"
    WEAK = "weak"


class Trend(Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class NodeKind(Enum):
    """
    Kinds of node in a lineage projection.

    Conclusions and metrics come from hierarchy nodes, data from data
    points, and responses from individual indexed records.
    """
    CONCLUSION = "conclusion"
    METRIC = "metric"
    DATA = "data"
    RESPONSE = "response"


@dataclass(frozen=True)
class DataPoint:
    """
    A piece of leaf-level evidence.

    Sample size defaults to 1 so a single uncounted observation still
    contributes to lineage counts.
    """
    source: str
    source_type: SourceType = SourceType.SURVEY
    sample_size: int = 1
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: dict = field(default_factory=dict)

    def __post_init__(self):
        if isinstance(self.source_type, str):
            object.__setattr__(self, "source_type", SourceType(self.source_type))
        if self.sample_size < 0:
            raise ValidationError(
                f"Data point {self.source} has negative sample size {self.sample_size}"
            )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DataPoint":
        return cls(
            source=data["source"],
            source_type=pick(data, "source_type", "sourceType", default="survey"),
            sample_size=pick(data, "sample_size", "sampleSize", default=1),
            timestamp=parse_datetime(data.get("timestamp")) or datetime.now(),
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass
class SupportingData:
    """A statistic, quote, correlation or trend backing a claim."""
    type: SupportingDataType = SupportingDataType.STATISTIC
    value: Union[str, float] = ""
    source: str = ""
    sample_size: Optional[int] = None

    def __post_init__(self):
        if isinstance(self.type, str):
            self.type = SupportingDataType(self.type)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SupportingData":
        return cls(
            type=data.get("type", "statistic"),
            value=data.get("value", ""),
            source=data.get("source", ""),
            sample_size=pick(data, "sample_size", "sampleSize"),
        )


@dataclass
class Evidence:
    """A claim together with the data supporting it."""
    claim: str = ""
    supporting_data: list = field(default_factory=list)
    strength: float = 0.0  # 0 to 100

    def __post_init__(self):
        if not 0 <= self.strength <= 100:
            raise ValidationError(f"Evidence strength {self.strength} outside 0-100")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Evidence":
        return cls(
            claim=data.get("claim", ""),
            supporting_data=[
                SupportingData.from_dict(d)
                for d in pick(data, "supporting_data", "supportingData", default=[])
            ],
            strength=data.get("strength", 0.0),
        )


@dataclass
class DataSource:
    """A source cited by an argumentation, e.g. one survey question."""
    id: str
    type: DataSourceType = DataSourceType.QUESTION
    question: Optional[str] = None
    response_count: int = 0
    # (start, end); unknown dates stay None and earn no recency credit
    date_range: tuple = (None, None)

    def __post_init__(self):
        if isinstance(self.type, str):
            self.type = DataSourceType(_DATA_SOURCE_ALIASES.get(self.type, self.type))
        if self.response_count < 0:
            raise ValidationError(
                f"Data source {self.id} has negative response count {self.response_count}"
            )
        start, end = self.date_range
        self.date_range = (parse_datetime(start), parse_datetime(end))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DataSource":
        source = cls(
            id=str(data.get("id") or ""),
            type=data.get("type") or "question",
            question=data.get("question"),
            response_count=pick(data, "response_count", "responseCount") or 0,
        )
        date_range = pick(data, "date_range", "dateRange")
        if date_range is not None:
            start, end = date_range
            source.date_range = (parse_datetime(start), parse_datetime(end))
        return source


@dataclass
class LogicChain:
    """Reasoning from premises to a conclusion."""
    premise: list = field(default_factory=list)
    reasoning: str = ""
    conclusion: str = ""
    alternative_explanations: list = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LogicChain":
        return cls(
            premise=list(data.get("premise") or []),
            reasoning=data.get("reasoning") or "",
            conclusion=data.get("conclusion") or "",
            alternative_explanations=list(
                pick(data, "alternative_explanations", "alternativeExplanations") or []
            ),
        )


@dataclass
class Argumentation:
    """
    Evidence-strength rating attached to a metric node.

    Derived data: recomputed whenever the owning node's inputs change and
    never persisted on its own. With all fields left at their defaults this
    doubles as the partial input of the argumentation calculator.
    """
    strength: Optional[StrengthLevel] = None
    evidence: list = field(default_factory=list)
    logic: Optional[LogicChain] = None
    confidence: int = 0  # 0 to 100
    sources: list = field(default_factory=list)

    def __post_init__(self):
        if isinstance(self.strength, str):
            self.strength = StrengthLevel(self.strength)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Argumentation":
        logic = data.get("logic")
        return cls(
            strength=data.get("strength"),
            evidence=[Evidence.from_dict(e) for e in data.get("evidence") or []],
            logic=LogicChain.from_dict(logic) if logic is not None else None,
            confidence=data.get("confidence", 0),
            sources=[DataSource.from_dict(s) for s in data.get("sources") or []],
        )


@dataclass
class MetricHierarchyNode:
    """
    A node of the 3-level metric hierarchy.

    Level 1 is the top-line conclusion, level 2 the intermediate metrics and
    level 3 the finest-grained metrics; data points hang off any level.
    Children must sit exactly one level below their parent.
    """
    id: str
    level: int = 1
    name: str = ""
    value: float = 0.0
    unit: Optional[str] = None
    trend: Optional[Trend] = None
    data_points: list = field(default_factory=list)
    children: list = field(default_factory=list)
    argumentation: Argumentation = field(default_factory=Argumentation)
    insight: str = ""

    # How this node is rolled up into its parent (weighted_sum, hybrid, ...)
    aggregation_method: Optional[str] = None

    def __post_init__(self):
        if self.level not in (1, 2, 3):
            raise ValidationError(f"Node {self.id} has invalid level {self.level}")
        if isinstance(self.trend, str):
            self.trend = Trend(self.trend)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MetricHierarchyNode":
        argumentation = data.get("argumentation")
        return cls(
            id=data["id"],
            level=data.get("level", 1),
            name=data.get("name", ""),
            value=data.get("value", 0.0),
            unit=data.get("unit"),
            trend=data.get("trend"),
            data_points=[
                DataPoint.from_dict(dp)
                for dp in pick(data, "data_points", "dataPoints", default=[])
            ],
            children=[cls.from_dict(c) for c in data.get("children") or []],
            argumentation=(
                Argumentation.from_dict(argumentation)
                if argumentation is not None else Argumentation()
            ),
            insight=data.get("insight", ""),
            aggregation_method=pick(data, "aggregation_method", "aggregationMethod"),
        )
