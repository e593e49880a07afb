#!/usr/bin/env python3
"""
Concept Insights - Main Demo

This script runs the explainable analytics pipeline over a small synthetic
concept test:
1. Scores persona contexts with a rule set (rule and hybrid mode)
2. Builds the metric hierarchy and grades its argumentation
3. Traces lineage from the conclusion back to raw data
4. Indexes persona responses and answers a free-text question
"""

from datetime import datetime, timedelta
import asyncio

from concept_insights.argumentation import ArgumentationCalculator
from concept_insights.core import DataPoint, SourceType
from concept_insights.lineage import LineageTracer
from concept_insights.logging_config import configure_logging
from concept_insights.retrieval import RAGEngine
from concept_insights.scoring import (
    Condition,
    ConditionalRule,
    LinearRule,
    RuleSet,
    ScoreThresholds,
    ScoringEngine,
    build_hierarchy
)


PERSONA_CONTEXTS = [
    {"price_sensitivity": 35, "quality_rating": 82, "brand_trust": 74, "segment": "premium"},
    {"price_sensitivity": 78, "quality_rating": 64, "brand_trust": 51, "segment": "budget"},
    {"price_sensitivity": 52, "quality_rating": 71, "brand_trust": 66, "segment": "mainstream"},
]

RESPONSES = [
    {"id": "s-001", "type": "survey", "sampleSize": 420,
     "answer": "The price feels high for a daily pet food but the quality looks excellent"},
    {"id": "s-002", "type": "survey", "sampleSize": 380,
     "answer": "I would switch brands if my vet recommended this formula"},
    {"id": "i-001", "type": "interview", "sampleSize": 12,
     "text": "Owners trust the brand but worry about price increases after launch"},
    {"id": "i-002", "type": "interview", "sampleSize": 9,
     "text": "Ingredient transparency is the main reason to pay a premium price"},
    {"id": "m-001", "type": "metric",
     "insight": "Purchase intent is strongest among premium segment owners"},
]


def build_rule_set() -> RuleSet:
    """Purchase-intent rule set used throughout the demo."""
    return RuleSet(
        rules=[
            LinearRule(
                metric="purchase_intent",
                weights={"quality_rating": 0.5, "brand_trust": 0.3, "price_sensitivity": 0.2}
            ),
            ConditionalRule(
                id="premium-fit",
                metric="segment_fit",
                when=[Condition("segment", "in", ("premium", "mainstream")),
                      Condition("quality_rating", "gte", 70)],
                then=80.0,
                priority=10
            ),
            ConditionalRule(
                id="price-barrier",
                metric="segment_fit",
                when=[Condition("price_sensitivity", "gt", 70)],
                then=30.0
            ),
        ],
        aggregation="weighted_sum",
        metric_weights={"purchase_intent": 0.7, "segment_fit": 0.3},
        thresholds=ScoreThresholds(high=70, medium=50, low=30),
        defaults={"segment_fit": 50.0}
    )


def run_scoring_demo(engine: ScoringEngine, rules: RuleSet):
    """Score every persona context."""
    print("=" * 60)
    print("SCORING")
    print("=" * 60)
    print()

    batch = engine.evaluate_batch(PERSONA_CONTEXTS, rules)

    print(f"{'Persona':<12} {'Intent':<10} {'Fit':<10} {'Overall':<10} {'Band':<8}")
    print("-" * 50)
    for context, result in zip(PERSONA_CONTEXTS, batch.results):
        intent = result.metrics["purchase_intent"]
        print(
            f"{context['segment']:<12} {intent.value:<10.1f} "
            f"{result.value('segment_fit'):<10.1f} {result.overall:<10.1f} "
            f"{intent.band.value:<8}"
        )
    print()
    print(f"Scored {batch.successful}/{batch.total} contexts, "
          f"average overall {batch.average_overall:.1f}")
    print()

    return batch.results[0]


def run_argumentation_demo(hierarchy):
    """Grade the evidence behind every node."""
    print("=" * 60)
    print("ARGUMENTATION")
    print("=" * 60)
    print()

    calculator = ArgumentationCalculator()
    annotated = calculator.annotate_hierarchy(hierarchy)

    for node in [annotated] + annotated.children:
        arg = node.argumentation
        print(f"  {node.name:<28} {arg.strength.value:<10} confidence {arg.confidence}")
    print()

    return annotated


def run_lineage_demo(hierarchy):
    """Trace the conclusion back to its data."""
    print("=" * 60)
    print("LINEAGE")
    print("=" * 60)
    print()

    tracer = LineageTracer(hierarchy)
    trace = tracer.trace_conclusion(hierarchy.id)

    print(f"Conclusion: {trace.conclusion}")
    print(f"Intermediate metrics: {', '.join(trace.intermediate_metrics)}")
    print(f"Raw data sources: {len(trace.raw_data_sources)} "
          f"({trace.total_count} responses)")
    for source in trace.raw_data_sources:
        print(f"  - {source.type:<12} {source.id:<24} n={source.count}")
    print()

    path = tracer.find_path(hierarchy.id, hierarchy.children[0].id)
    print("Path:", " -> ".join(
        f"{step.node_name}" + (f" [{step.transformation}]" if step.transformation else "")
        for step in path.path
    ))
    print()


async def run_retrieval_demo():
    """Index persona responses and answer a question."""
    print("=" * 60)
    print("RETRIEVAL")
    print("=" * 60)
    print()

    engine = RAGEngine()
    await engine.initialize(RESPONSES)

    result = engine.query("why do owners hesitate on price", top_k=3)
    print(result.answer)
    print()
    print(f"Confidence: {result.confidence}")
    print("Related questions:")
    for question in result.related_questions:
        print(f"  - {question}")
    print()

    engine.dispose()


def main():
    """Main entry point."""
    configure_logging()

    print()
    print("+" + "=" * 58 + "+")
    print("|          CONCEPT INSIGHTS PIPELINE DEMONSTRATION         |")
    print("+" + "=" * 58 + "+")
    print()

    rules = build_rule_set()
    result = run_scoring_demo(ScoringEngine(), rules)

    now = datetime.now()
    data_points = {
        "purchase_intent": [
            DataPoint("survey-q3-intent", SourceType.SURVEY, 800, now - timedelta(days=5)),
            DataPoint("interview-round-1", SourceType.INTERVIEW, 21, now - timedelta(days=8)),
        ],
        "brand_trust": [
            DataPoint("survey-q7-trust", SourceType.SURVEY, 760, now - timedelta(days=5)),
        ],
        "segment_fit": [
            DataPoint("simulation-batch-4", SourceType.SIMULATION, 300, now - timedelta(days=2)),
        ],
    }

    hierarchy = build_hierarchy(
        result,
        conclusion_id="concept-appeal",
        conclusion_name="Concept appeal",
        data_points=data_points,
        insight="Premium owners show the strongest purchase intent"
    )

    annotated = run_argumentation_demo(hierarchy)
    run_lineage_demo(annotated)
    asyncio.run(run_retrieval_demo())

    print("=" * 60)
    print("DEMONSTRATION COMPLETE")
    print("=" * 60)
    print()


if __name__ == "__main__":
    main()
