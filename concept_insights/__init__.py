"""
Concept Insights

Explainable analytics over simulated persona responses to a product concept:
rule/hybrid scoring, evidence strength grading, retrieval-augmented queries
and data lineage tracing over a shared metric hierarchy.
"""

__version__ = "0.1.0"
