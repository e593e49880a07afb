"""
Metric Hierarchy Builder

Projects a ScoredResult into the 3-level metric hierarchy consumed by the
argumentation calculator, the lineage tracer and the retrieval index:

    level 1  conclusion        (overall score)
    level 2  metric            (one per scored metric)
    level 3  signal            (one per weighted signal contribution)
"""

from typing import Mapping, Optional, Sequence

from ..core.entities import MetricHierarchyNode
from ..core.hierarchy import validate_hierarchy
from .engine import ScoredResult


class HierarchyBuilder:
    """Builds a validated MetricHierarchyNode tree from a scored result."""

    def build(
        self,
        result: ScoredResult,
        conclusion_id: str,
        conclusion_name: str,
        data_points: Optional[Mapping[str, Sequence]] = None,
        insight: str = "",
        unit: Optional[str] = None
    ) -> MetricHierarchyNode:
        """
        ``data_points`` maps a metric or signal name to the DataPoints that
        back it; they are attached to the node with that name.
        """
        data_points = data_points or {}

        conclusion = MetricHierarchyNode(
            id=conclusion_id,
            level=1,
            name=conclusion_name,
            value=result.overall,
            unit=unit,
            data_points=list(data_points.get(conclusion_id, [])),
            insight=insight,
            aggregation_method=result.aggregation.value
        )

        for metric, score in result.metrics.items():
            metric_node = MetricHierarchyNode(
                id=f"{conclusion_id}.{metric}",
                level=2,
                name=metric,
                value=score.value,
                unit=unit,
                data_points=list(data_points.get(metric, [])),
                insight=self._describe(score),
                aggregation_method=score.aggregation_method
            )

            for signal, contribution in score.contributions.items():
                metric_node.children.append(MetricHierarchyNode(
                    id=f"{conclusion_id}.{metric}.{signal}",
                    level=3,
                    name=signal,
                    value=contribution,
                    data_points=list(data_points.get(signal, [])),
                    aggregation_method="weighted"
                ))

            conclusion.children.append(metric_node)

        validate_hierarchy(conclusion)
        return conclusion

    def _describe(self, score) -> str:
        text = f"{score.metric} scored {score.value:.1f}"
        if score.band is not None:
            text += f" ({score.band.value})"
        if score.matched_rule is not None:
            text += f" via rule {score.matched_rule}"
        return text


def build_hierarchy(
    result: ScoredResult,
    conclusion_id: str,
    conclusion_name: str,
    data_points: Optional[Mapping[str, Sequence]] = None,
    insight: str = "",
    unit: Optional[str] = None
) -> MetricHierarchyNode:
    """Build a metric hierarchy from a scored result."""
    return HierarchyBuilder().build(
        result, conclusion_id, conclusion_name, data_points, insight, unit
    )
