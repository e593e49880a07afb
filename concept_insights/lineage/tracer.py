"""
Data Lineage Tracer

Tracks data flow from raw data points to conclusions:
- trace_conclusion: the metrics and raw sources behind a node
- build_lineage_tree: a conclusion -> metric -> data projection for display
- find_path: the one-hop path from a node through its direct children
- lineage_edges: the edges of the projected lineage graph

The hierarchy is indexed once at construction. Ids are expected to be
unique; duplicates are flagged (logged and listed in ``duplicate_ids``)
and the first node in pre-order wins.
"""

import logging

from ..core.entities import DataPoint, MetricHierarchyNode, NodeKind
from ..core.errors import CycleDetectedError, NotFoundError, ValidationError
from ..core.hierarchy import Roots, as_roots, collect_data_points, walk
from .schemas import (
    DataTrace,
    EdgeType,
    LineageEdge,
    LineageNode,
    LineagePath,
    PathStep,
    RawDataSource,
)

logger = logging.getLogger(__name__)


DEFAULT_TRANSFORMATION = "aggregate"


class LineageTracer:
    """
    Provenance queries over one metric hierarchy (or a forest of them).

    Raises CycleDetectedError at construction when the input loops back on
    itself.
    """

    def __init__(self, hierarchy: Roots):
        self._roots = as_roots(hierarchy)
        self._nodes: dict[str, MetricHierarchyNode] = {}
        self.duplicate_ids: list[str] = []

        for node, _, _ in walk(self._roots):
            if node.id in self._nodes:
                if node.id not in self.duplicate_ids:
                    self.duplicate_ids.append(node.id)
                    logger.warning(
                        "Duplicate node id %s in metric hierarchy; using first occurrence",
                        node.id
                    )
                continue
            self._nodes[node.id] = node

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._nodes

    def trace_conclusion(self, conclusion_id: str) -> DataTrace:
        """
        Direct child metric names plus every data point reachable from the node.

        A data point with no recorded sample (size 0) counts as one observation.
        """
        conclusion = self._get(conclusion_id)

        return DataTrace(
            conclusion=conclusion.name,
            intermediate_metrics=[child.name for child in conclusion.children],
            raw_data_sources=[
                RawDataSource(
                    type=dp.source_type.value,
                    id=dp.source,
                    count=dp.sample_size or 1
                )
                for dp in collect_data_points(conclusion)
            ]
        )

    def build_lineage_tree(self, conclusion_id: str) -> LineageNode:
        """Project the subtree under ``conclusion_id`` into lineage nodes."""
        conclusion = self._get(conclusion_id)
        return self._project(conclusion, NodeKind.CONCLUSION, frozenset())

    def find_path(self, from_id: str, to_id: str) -> LineagePath:
        """
        One-hop path: the ``from`` node followed by its direct children, each
        labelled with its aggregation method.

        Both ids must exist. Nodes further than one hop are not searched for;
        ``reaches_target`` reports whether ``to`` lies on the returned path.
        """
        from_node = self._get(from_id)
        self._get(to_id)

        path = [PathStep(node_id=from_node.id, node_name=from_node.name)]
        for child in from_node.children:
            path.append(PathStep(
                node_id=child.id,
                node_name=child.name,
                transformation=child.aggregation_method or DEFAULT_TRANSFORMATION
            ))

        reaches_target = any(step.node_id == to_id for step in path)
        if not reaches_target:
            logger.debug("%s is more than one hop from %s; path is partial", to_id, from_id)

        return LineagePath(
            from_id=from_id,
            to_id=to_id,
            path=path,
            reaches_target=reaches_target
        )

    def lineage_edges(self, conclusion_id: str) -> list[LineageEdge]:
        """Edges of the lineage tree rooted at ``conclusion_id``, in pre-order."""
        tree = self.build_lineage_tree(conclusion_id)
        edges = []

        stack = [tree]
        while stack:
            node = stack.pop()
            for child in node.children:
                edges.append(LineageEdge(
                    id=f"{node.id}->{child.id}",
                    source=node.id,
                    target=child.id,
                    label=child.metadata.get("aggregation_method"),
                    type=self._edge_type(child.type)
                ))
            stack.extend(reversed(node.children))

        return edges

    def _get(self, node_id: str) -> MetricHierarchyNode:
        node = self._nodes.get(node_id)
        if node is None:
            raise NotFoundError(node_id)
        return node

    def _project(
        self,
        node: MetricHierarchyNode,
        kind: NodeKind,
        active: frozenset
    ) -> LineageNode:
        if id(node) in active:
            raise CycleDetectedError(node.id)
        active = active | {id(node)}

        children = [self._project(child, NodeKind.METRIC, active) for child in node.children]
        children.extend(self._data_leaf(dp) for dp in node.data_points)

        metadata = {
            "level": node.level,
            "aggregation_method": node.aggregation_method or DEFAULT_TRANSFORMATION,
        }
        if node.unit:
            metadata["unit"] = node.unit
        if node.argumentation.strength is not None:
            metadata["strength"] = node.argumentation.strength.value
            metadata["confidence"] = node.argumentation.confidence

        return LineageNode(
            id=node.id,
            type=kind,
            label=node.name,
            value=node.value,
            children=children,
            metadata=metadata
        )

    def _data_leaf(self, dp: DataPoint) -> LineageNode:
        return LineageNode(
            id=dp.source,
            type=NodeKind.DATA,
            label=dp.source,
            value=dp.sample_size,
            source=dp.source,
            metadata={
                "sample_size": dp.sample_size,
                "timestamp": dp.timestamp,
                "source_type": dp.source_type.value,
                **dp.metadata
            }
        )

    def _edge_type(self, kind: NodeKind) -> EdgeType:
        if kind == NodeKind.METRIC:
            return EdgeType.AGGREGATION
        elif kind == NodeKind.DATA:
            return EdgeType.DIRECT
        elif kind == NodeKind.RESPONSE:
            return EdgeType.FILTER
        elif kind == NodeKind.CONCLUSION:
            raise ValidationError("A conclusion cannot appear below another node")
        else:
            raise ValueError(f"Unsupported node kind: {kind}")
