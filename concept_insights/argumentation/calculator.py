"""
Argumentation Strength Calculator

Grades how well evidence supports a conclusion. The strength score (0-100)
is the sum of four sub-scores:
- Sample size: up to 40 points, 1000+ combined responses earn full points
- Source diversity: 10 points per distinct source type, up to 30
- Recency: 20 points for data under 30 days old, 10 under 90 days
- Cross-validation: 10 points when two or more source types agree

Confidence blends the strength score with evidence and logic quality.

The calculator backs a best-effort UI badge, so it never fails: missing
inputs degrade to their baseline scores.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Union
import logging
import math

from ..config.settings import ArgumentationConfig, get_settings
from ..core.entities import (
    Argumentation,
    DataSource,
    DataSourceType,
    LogicChain,
    MetricHierarchyNode,
    SourceType,
    StrengthLevel,
)
from ..core.errors import CycleDetectedError, InsightError
from ..core.hierarchy import collect_data_points
from ..core.utils import align_datetime, round_half_up

logger = logging.getLogger(__name__)


PartialArgumentation = Union[Argumentation, Mapping[str, Any], None]

# Data point origins map onto the source types an argumentation cites
_SOURCE_TYPE_MAP = {
    SourceType.SURVEY: DataSourceType.QUESTION,
    SourceType.INTERVIEW: DataSourceType.INTERVIEW,
    SourceType.SIMULATION: DataSourceType.SIMULATION,
    SourceType.TRANSACTION: DataSourceType.TRANSACTION,
}


@dataclass
class StrengthBreakdown:
    """The four sub-scores behind a strength score."""
    sample_size: float = 0.0
    diversity: float = 0.0
    recency: float = 0.0
    cross_validation: float = 0.0

    @property
    def total(self) -> float:
        return min(100.0, self.sample_size + self.diversity + self.recency + self.cross_validation)


class ArgumentationCalculator:
    """
    Calculates evidence strength and confidence for metric nodes.

    Pure with respect to its input; the clock is injectable so data ages
    can be pinned in tests.
    """

    def __init__(
        self,
        config: ArgumentationConfig = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.config = config or get_settings().argumentation
        self._clock = clock

    def calculate_strength(self, partial: PartialArgumentation = None) -> Argumentation:
        """Fill in strength and confidence for a (possibly partial) argumentation."""
        arg = self._coerce(partial)
        breakdown = self.strength_breakdown(arg)
        score = breakdown.total

        return Argumentation(
            strength=self._strength_level(score),
            evidence=list(arg.evidence),
            logic=arg.logic or LogicChain(),
            confidence=self._confidence(score, arg),
            sources=list(arg.sources),
        )

    def strength_breakdown(self, partial: PartialArgumentation = None) -> StrengthBreakdown:
        """Sub-scores of the strength score, for explanation views."""
        arg = self._coerce(partial)
        source_types = {source.type for source in arg.sources}

        total_sample_size = sum(source.response_count for source in arg.sources)

        average_age = self._average_age_days(arg.sources)
        if average_age < self.config.recent_days:
            recency = 20.0
        elif average_age < self.config.stale_days:
            recency = 10.0
        else:
            recency = 0.0

        return StrengthBreakdown(
            sample_size=min(40.0, total_sample_size / 25),
            diversity=min(30.0, len(source_types) * 10.0),
            recency=recency,
            cross_validation=10.0 if len(source_types) >= 2 else 0.0,
        )

    def strength_score(self, partial: PartialArgumentation = None) -> float:
        return self.strength_breakdown(partial).total

    def evidence_quality(self, evidence: list) -> float:
        """
        Mean over evidence items of min(100, average supporting sample size / 10).

        Supporting data without a sample size counts as one observation and
        evidence with no supporting data scores 0.
        """
        if not evidence:
            return 0.0

        quality = 0.0
        for item in evidence:
            if not item.supporting_data:
                continue
            average = sum(
                d.sample_size if d.sample_size is not None else 1
                for d in item.supporting_data
            ) / len(item.supporting_data)
            quality += min(100.0, average / 10)

        return min(100.0, quality / len(evidence))

    def logic_quality(self, logic: Optional[LogicChain]) -> float:
        if logic is None:
            return 50.0

        score = 50.0
        if logic.premise:
            score += 20
        if logic.reasoning:
            score += 20
        if logic.conclusion:
            score += 10

        return min(100.0, score)

    def annotate_hierarchy(self, root: MetricHierarchyNode) -> MetricHierarchyNode:
        """
        Copy of the tree with every node's argumentation recomputed.

        Nodes that cite no sources get sources derived from the data points
        reachable below them. The input tree is left untouched.
        """
        annotated = self._annotate(root, set())
        logger.debug(
            "Annotated hierarchy %s: %s (confidence %d)",
            root.id, annotated.argumentation.strength.value,
            annotated.argumentation.confidence
        )
        return annotated

    def sources_from_data_points(self, data_points: list) -> list:
        """Group data points by source into DataSource records."""
        grouped = {}
        for dp in data_points:
            grouped.setdefault(dp.source, []).append(dp)

        sources = []
        for name, points in grouped.items():
            timestamps = [dp.timestamp for dp in points]
            sources.append(DataSource(
                id=name,
                type=_SOURCE_TYPE_MAP[points[0].source_type],
                response_count=sum(dp.sample_size for dp in points),
                date_range=(min(timestamps), max(timestamps)),
            ))
        return sources

    def _annotate(self, node: MetricHierarchyNode, active: set) -> MetricHierarchyNode:
        # Guard against malformed, cyclic input
        if id(node) in active:
            raise CycleDetectedError(node.id)
        active = active | {id(node)}

        children = [self._annotate(child, active) for child in node.children]

        partial = node.argumentation
        if not partial.sources:
            partial = replace(
                partial,
                sources=self.sources_from_data_points(collect_data_points(node))
            )

        return replace(
            node,
            children=children,
            data_points=list(node.data_points),
            argumentation=self.calculate_strength(partial),
        )

    def _strength_level(self, score: float) -> StrengthLevel:
        if score >= self.config.strong_threshold:
            return StrengthLevel.STRONG
        if score >= self.config.moderate_threshold:
            return StrengthLevel.MODERATE
        return StrengthLevel.WEAK

    def _confidence(self, strength_score: float, arg: Argumentation) -> int:
        evidence_quality = self.evidence_quality(arg.evidence)
        logic_quality = self.logic_quality(arg.logic)

        return round_half_up(
            strength_score * 0.5 + evidence_quality * 0.3 + logic_quality * 0.2
        )

    def _average_age_days(self, sources: list) -> float:
        starts = [s.date_range[0] for s in sources if s.date_range and s.date_range[0]]
        if not starts:
            return math.inf

        now = self._clock()
        ages = [(now - align_datetime(start, now)).total_seconds() / 86400 for start in starts]
        return sum(ages) / len(ages)

    def _coerce(self, partial: PartialArgumentation) -> Argumentation:
        if partial is None:
            return Argumentation()
        if isinstance(partial, Argumentation):
            return partial
        try:
            return Argumentation.from_dict(partial)
        except (InsightError, KeyError, TypeError, ValueError) as e:
            logger.warning("Malformed argumentation input, using baseline: %s", e)
            return Argumentation()
