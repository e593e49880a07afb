"""
Error Taxonomy

Scoring and lineage failures indicate a data-integrity problem upstream and
are always surfaced to the caller. The argumentation calculator never raises
for missing input, and an empty retrieval is a result, not an error.
"""

from typing import Optional


class InsightError(Exception):
    """Base class for all errors raised by the analytics core."""
    pass


class ValidationError(InsightError, ValueError):
    """Malformed rule weights, thresholds, records or embedding dimensions."""
    pass


class NotFoundError(InsightError, LookupError):
    """Unknown node id in a lineage lookup."""

    def __init__(self, node_id: str, message: Optional[str] = None):
        self.node_id = node_id
        super().__init__(message or f"Node {node_id} not found")


class NotInitializedError(InsightError, RuntimeError):
    """Query issued before the retrieval index finished building."""
    pass


class CycleDetectedError(InsightError):
    """A hierarchy that should be a tree loops back on itself."""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Cycle detected in metric hierarchy at node {node_id}")
