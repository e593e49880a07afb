"""
Scoring Engine

Turns a persona/context signal mapping into metric values:
- Rule mode: weighted linear sums or first-matching conditional rules
- Hybrid mode: blends the rule-based score with an externally supplied
  model-derived score using a configurable mixing ratio

Evaluation is deterministic: identical context and rules always produce an
identical result, which keeps scores reproducible for audit.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence
import logging
import statistics

from ..config.settings import ScoringConfig, get_settings
from ..core.errors import ValidationError
from .rules import (
    AggregationMethod,
    LinearRule,
    RuleSet,
    ScoreBand,
    ScoringMode,
)

logger = logging.getLogger(__name__)


@dataclass
class MetricScore:
    """Score of a single metric with its derivation."""
    metric: str
    value: float
    rule_score: float
    model_score: Optional[float] = None
    contributions: dict = field(default_factory=dict)  # signal -> contribution
    matched_rule: Optional[str] = None
    band: Optional[ScoreBand] = None

    @property
    def aggregation_method(self) -> str:
        """Label describing how the value was produced."""
        if self.model_score is not None:
            return "hybrid"
        if self.matched_rule is not None:
            return f"rule:{self.matched_rule}"
        if self.contributions:
            return "weighted_sum"
        return "default"


@dataclass
class ScoredResult:
    """Result of evaluating a rule set against one context."""
    metrics: dict = field(default_factory=dict)  # metric name -> MetricScore
    overall: float = 0.0
    mode: ScoringMode = ScoringMode.RULE
    aggregation: AggregationMethod = AggregationMethod.AVERAGE
    mixing_ratio: Optional[float] = None

    def value(self, metric: str) -> float:
        return self.metrics[metric].value


@dataclass
class BatchError:
    index: int
    message: str


@dataclass
class BatchScoringResult:
    """Result of scoring many contexts with the same rule set."""
    results: list = field(default_factory=list)
    errors: list = field(default_factory=list)
    total: int = 0
    successful: int = 0
    failed: int = 0
    average_overall: float = 0.0


class ScoringEngine:
    """
    Evaluates rule sets against persona contexts.

    Explicitly constructed; holds only configuration, so one engine can
    serve any number of rule sets.
    """

    def __init__(self, config: ScoringConfig = None):
        self.config = config or get_settings().scoring

    def evaluate(
        self,
        context: Mapping[str, Any],
        rules: RuleSet,
        model_scores: Optional[Mapping[str, float]] = None
    ) -> ScoredResult:
        """
        Score every metric of ``rules`` against ``context``.

        Raises ValidationError when the rule set is malformed, when a
        referenced signal is absent from the context, or when hybrid mode
        lacks a model score for a metric.
        """
        mixing_ratio = self._mixing_ratio(rules)
        rules.validate(self.config.weight_tolerance, mixing_ratio)

        missing = [signal for signal in rules.signals if signal not in context]
        if missing:
            raise ValidationError(
                "Signals missing from context: " + ", ".join(missing)
            )

        model_scores = model_scores or {}
        metrics = {}

        for metric in rules.metrics:
            score = self._score_metric(metric, rules, context)

            if rules.mode == ScoringMode.HYBRID:
                if metric not in model_scores:
                    raise ValidationError(f"Hybrid scoring needs a model score for {metric}")
                score.model_score = float(model_scores[metric])
                score.value = (
                    (1.0 - mixing_ratio) * score.rule_score
                    + mixing_ratio * score.model_score
                )

            if rules.thresholds is not None:
                score.band = rules.thresholds.band(score.value)

            metrics[metric] = score

        result = ScoredResult(
            metrics=metrics,
            overall=self._aggregate(metrics, rules),
            mode=rules.mode,
            aggregation=rules.aggregation,
            mixing_ratio=mixing_ratio if rules.mode == ScoringMode.HYBRID else None,
        )

        logger.debug(
            "Scored %d metrics (%s mode), overall %.2f",
            len(metrics), rules.mode.value, result.overall
        )
        return result

    def evaluate_batch(
        self,
        contexts: Sequence[Mapping[str, Any]],
        rules: RuleSet,
        model_scores: Optional[Sequence[Mapping[str, float]]] = None
    ) -> BatchScoringResult:
        """
        Score many contexts with one rule set.

        A context that fails validation is recorded in ``errors`` and the
        batch carries on; ``model_scores`` is aligned with ``contexts``.
        """
        batch = BatchScoringResult(total=len(contexts))

        for index, context in enumerate(contexts):
            scores = model_scores[index] if model_scores is not None else None
            try:
                batch.results.append(self.evaluate(context, rules, scores))
            except ValidationError as e:
                logger.warning("Context %d failed scoring: %s", index, e)
                batch.errors.append(BatchError(index=index, message=str(e)))

        batch.successful = len(batch.results)
        batch.failed = len(batch.errors)
        if batch.results:
            batch.average_overall = statistics.mean(r.overall for r in batch.results)

        logger.info(
            "Batch scoring complete: %d/%d successful",
            batch.successful, batch.total
        )
        return batch

    def _mixing_ratio(self, rules: RuleSet) -> float:
        if rules.mixing_ratio is not None:
            return rules.mixing_ratio
        return self.config.default_mixing_ratio

    def _score_metric(
        self,
        metric: str,
        rules: RuleSet,
        context: Mapping[str, Any]
    ) -> MetricScore:
        """Rule-based score of one metric."""
        metric_rules = rules.rules_for(metric)

        if isinstance(metric_rules[0], LinearRule):
            contributions = metric_rules[0].contributions(context)
            value = sum(contributions.values())
            return MetricScore(
                metric=metric,
                value=value,
                rule_score=value,
                contributions=contributions
            )

        # Conditional rules: highest priority first, ties keep declaration order
        ordered = sorted(metric_rules, key=lambda r: -r.priority)
        for rule in ordered:
            if rule.matches(context):
                return MetricScore(
                    metric=metric,
                    value=rule.then,
                    rule_score=rule.then,
                    matched_rule=rule.id
                )

        default = float(rules.defaults.get(metric, 0.0))
        return MetricScore(metric=metric, value=default, rule_score=default)

    def _aggregate(self, metrics: dict, rules: RuleSet) -> float:
        """Roll metric values up into the overall score."""
        values = [score.value for score in metrics.values()]
        method = rules.aggregation

        if method == AggregationMethod.WEIGHTED_SUM:
            return sum(
                rules.metric_weights[name] * score.value
                for name, score in metrics.items()
            )
        elif method == AggregationMethod.MAX:
            return max(values)
        elif method == AggregationMethod.AVERAGE:
            return statistics.mean(values)
        else:
            raise ValidationError(f"Unsupported aggregation method: {method}")
