"""
Scoring Rules

Rules turn a persona/context signal mapping into metric values:
- LinearRule: weighted sum of named numeric signals
- ConditionalRule: fixed score when every condition holds, first match by priority
- ScoreThresholds: banding of metric values (high / medium / low)
- RuleSet: an ordered collection of rules plus mode and aggregation settings

Conditions are structured (signal, operator, value) triples evaluated with the
``operator`` module; no expression strings are ever executed.
"""

from dataclasses import dataclass, field
from enum import Enum
from numbers import Real
from typing import Any, Mapping, Optional
import operator

from ..core.errors import ValidationError


class ScoringMode(Enum):
    """How a metric value is produced."""
    RULE = "rule"
    HYBRID = "hybrid"


class AggregationMethod(Enum):
    """How metric values roll up into the overall score."""
    WEIGHTED_SUM = "weighted_sum"
    MAX = "max"
    AVERAGE = "average"


class ScoreBand(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    BELOW = "below"


_OPERATORS = {
    "gt": operator.gt,
    "lt": operator.lt,
    "gte": operator.ge,
    "lte": operator.le,
    "eq": operator.eq,
    "ne": operator.ne,
    "in": lambda value, options: value in options,
}

_ORDERING_OPERATORS = {"gt", "lt", "gte", "lte"}


def is_numeric(value: Any) -> bool:
    """True for ints and floats; booleans are categorical."""
    return isinstance(value, Real) and not isinstance(value, bool)


def check_weights(weights: Mapping[str, float], tolerance: float, owner: str) -> None:
    """Weights must each lie in [0, 1] and sum to 1.0 within ``tolerance``."""
    if not weights:
        raise ValidationError(f"{owner} has no weights")

    for name, weight in weights.items():
        if not is_numeric(weight) or not 0.0 <= weight <= 1.0:
            raise ValidationError(f"{owner} weight for {name} must be in [0, 1], got {weight!r}")

    total = sum(weights.values())
    if abs(total - 1.0) > tolerance:
        raise ValidationError(f"{owner} weights must sum to 1.0, got {total:.4f}")


@dataclass
class Condition:
    """A single comparison of a context signal against a value."""
    signal: str
    operator: str = "gte"  # gt, lt, gte, lte, eq, ne, in
    value: Any = 0

    def validate(self) -> None:
        if self.operator not in _OPERATORS:
            raise ValidationError(f"Unknown condition operator: {self.operator}")
        if self.operator in _ORDERING_OPERATORS and not is_numeric(self.value):
            raise ValidationError(
                f"Operator {self.operator} on {self.signal} needs a numeric value"
            )
        if self.operator == "in" and not isinstance(self.value, (list, tuple, set, frozenset)):
            raise ValidationError(
                f"Operator in on {self.signal} needs a list, tuple or set of options"
            )

    def evaluate(self, context: Mapping[str, Any]) -> bool:
        actual = context[self.signal]
        if self.operator in _ORDERING_OPERATORS and not is_numeric(actual):
            raise ValidationError(
                f"Signal {self.signal} is categorical ({actual!r}); "
                f"cannot apply {self.operator}"
            )
        return bool(_OPERATORS[self.operator](actual, self.value))


@dataclass
class LinearRule:
    """metric = scale * sum(weight * signal)."""
    metric: str
    weights: dict = field(default_factory=dict)
    scale: float = 1.0

    @property
    def signals(self) -> list:
        return list(self.weights)

    def validate(self, tolerance: float) -> None:
        check_weights(self.weights, tolerance, f"Rule for {self.metric}")

    def contributions(self, context: Mapping[str, Any]) -> dict:
        """Per-signal contribution to the metric value."""
        contributions = {}
        for signal, weight in self.weights.items():
            value = context[signal]
            if not is_numeric(value):
                raise ValidationError(
                    f"Signal {signal} must be numeric for a weighted rule, got {value!r}"
                )
            contributions[signal] = self.scale * weight * value
        return contributions


@dataclass
class ConditionalRule:
    """
    Assigns ``then`` to a metric when every condition holds.

    Among the conditional rules for the same metric, higher priority is
    tried first and declaration order breaks ties.
    """
    id: str
    metric: str
    when: list = field(default_factory=list)
    then: float = 0.0
    priority: int = 0

    @property
    def signals(self) -> list:
        return [c.signal for c in self.when]

    def validate(self, tolerance: float) -> None:
        if not self.when:
            raise ValidationError(f"Conditional rule {self.id} has no conditions")
        for condition in self.when:
            condition.validate()

    def matches(self, context: Mapping[str, Any]) -> bool:
        return all(condition.evaluate(context) for condition in self.when)


@dataclass
class ScoreThresholds:
    """Band boundaries on a 0-100 scale."""
    high: float = 70.0
    medium: float = 40.0
    low: float = 20.0

    def validate(self) -> None:
        for name in ("high", "medium", "low"):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise ValidationError(f"Threshold {name}={value} outside 0-100")
        if not self.high > self.medium > self.low:
            raise ValidationError(
                "Thresholds must be in descending order: high > medium > low"
            )

    def band(self, value: float) -> ScoreBand:
        if value >= self.high:
            return ScoreBand.HIGH
        if value >= self.medium:
            return ScoreBand.MEDIUM
        if value >= self.low:
            return ScoreBand.LOW
        return ScoreBand.BELOW


@dataclass
class RuleSet:
    """
    An ordered set of rules with the settings needed to evaluate them.

    A metric is scored either by exactly one linear rule or by one or more
    conditional rules.
    """
    rules: list = field(default_factory=list)
    mode: ScoringMode = ScoringMode.RULE
    mixing_ratio: Optional[float] = None  # share of the model score in hybrid mode
    aggregation: AggregationMethod = AggregationMethod.AVERAGE
    metric_weights: dict = field(default_factory=dict)
    thresholds: Optional[ScoreThresholds] = None
    defaults: dict = field(default_factory=dict)

    def __post_init__(self):
        if isinstance(self.mode, str):
            self.mode = ScoringMode(self.mode)
        if isinstance(self.aggregation, str):
            self.aggregation = AggregationMethod(self.aggregation)

    @property
    def metrics(self) -> list:
        """Metric names in first-declaration order."""
        names = []
        for rule in self.rules:
            if rule.metric not in names:
                names.append(rule.metric)
        return names

    @property
    def signals(self) -> list:
        """Every signal any rule references, in first-reference order."""
        names = []
        for rule in self.rules:
            for signal in rule.signals:
                if signal not in names:
                    names.append(signal)
        return names

    def rules_for(self, metric: str) -> list:
        return [rule for rule in self.rules if rule.metric == metric]

    def validate(self, tolerance: float, mixing_ratio: float) -> None:
        """Check every rule and the set-level settings; raises ValidationError."""
        if not self.rules:
            raise ValidationError("Rule set is empty")

        for rule in self.rules:
            rule.validate(tolerance)

        for metric in self.metrics:
            kinds = {type(rule) for rule in self.rules_for(metric)}
            linear = [r for r in self.rules_for(metric) if isinstance(r, LinearRule)]
            if len(linear) > 1 or len(kinds) > 1:
                raise ValidationError(
                    f"Metric {metric} must be scored by one weighted rule "
                    "or by conditional rules only"
                )

        if not 0.0 <= mixing_ratio <= 1.0:
            raise ValidationError(f"Mixing ratio must be in [0, 1], got {mixing_ratio}")

        if self.aggregation == AggregationMethod.WEIGHTED_SUM:
            if set(self.metric_weights) != set(self.metrics):
                raise ValidationError(
                    "Weighted-sum aggregation needs a weight for exactly these metrics: "
                    + ", ".join(self.metrics)
                )
            check_weights(self.metric_weights, tolerance, "Metric aggregation")

        if self.thresholds is not None:
            self.thresholds.validate()
