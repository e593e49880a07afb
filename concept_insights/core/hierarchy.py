"""
Hierarchy Traversal

Every walk over a metric hierarchy goes through ``walk`` so that malformed
input (a node that is its own ancestor) fails with ``CycleDetectedError``
instead of recursing forever.
"""

from typing import Iterable, Iterator, Optional, Union

from .entities import MetricHierarchyNode
from .errors import CycleDetectedError, ValidationError


Roots = Union[MetricHierarchyNode, Iterable[MetricHierarchyNode]]


def as_roots(roots: Roots) -> list:
    """Normalise a single root or an iterable of roots into a list."""
    if isinstance(roots, MetricHierarchyNode):
        return [roots]
    return list(roots)


def walk(roots: Roots) -> Iterator[tuple]:
    """
    Pre-order depth-first walk yielding ``(node, parent, depth)``.

    Uses an explicit stack; the identities of the nodes on the current
    root-to-node path are tracked to detect cycles.
    """
    for root in as_roots(roots):
        # Stack entries: (node, parent, depth, path-of-ancestor-ids)
        stack = [(root, None, 0, frozenset())]
        while stack:
            node, parent, depth, ancestors = stack.pop()
            if id(node) in ancestors:
                raise CycleDetectedError(node.id)

            yield node, parent, depth

            path = ancestors | {id(node)}
            for child in reversed(node.children):
                stack.append((child, node, depth + 1, path))


def find_node(roots: Roots, node_id: str) -> Optional[MetricHierarchyNode]:
    """First node in pre-order whose id matches, or None."""
    for node, _, _ in walk(roots):
        if node.id == node_id:
            return node
    return None


def collect_data_points(node: MetricHierarchyNode) -> list:
    """All data points reachable from ``node``: its own first, then children in pre-order."""
    data_points = []
    for current, _, _ in walk(node):
        data_points.extend(current.data_points)
    return data_points


def validate_hierarchy(root: MetricHierarchyNode) -> None:
    """
    Check the tree invariants of a metric hierarchy.

    - rooted at a level-1 conclusion
    - each child sits exactly one level below its parent
    - no cycles, no node owned by two parents, no duplicate ids
    """
    if root.level != 1:
        raise ValidationError(f"Hierarchy root {root.id} must be level 1, got {root.level}")

    seen_objects = set()
    seen_ids = set()

    for node, parent, _ in walk(root):
        if id(node) in seen_objects:
            raise ValidationError(f"Node {node.id} is shared by more than one parent")
        seen_objects.add(id(node))

        if node.id in seen_ids:
            raise ValidationError(f"Duplicate node id {node.id}")
        seen_ids.add(node.id)

        if parent is not None and node.level != parent.level + 1:
            raise ValidationError(
                f"Node {node.id} at level {node.level} cannot be a child of "
                f"{parent.id} at level {parent.level}"
            )
