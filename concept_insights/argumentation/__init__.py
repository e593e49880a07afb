"""
Argumentation - Evidence Strength Grading

Attaches strength labels and confidence scores to metric nodes.
"""

from .calculator import ArgumentationCalculator, StrengthBreakdown

__all__ = [
    "ArgumentationCalculator",
    "StrengthBreakdown"
]
