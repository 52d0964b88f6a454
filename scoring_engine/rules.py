"""
Criterion Rules

Evaluates one observed value against a criterion's operator and limits.
Each operator awards 1 point (optimal), 0.5 (acceptable) or 0 (fail).

between:  [lowerLimit, upperLimit] optimal
          [lowerLimit2, lowerLimit) or (upperLimit, upperLimit2] acceptable
greater:  >= lowerLimit optimal, >= lowerLimit2 acceptable
less:     <= upperLimit optimal, <= upperLimit2 acceptable

A limit set to None never matches.
"""

import math
from typing import Any, Optional, Tuple

from .models import CriterionConfig, Operator, ScoreStatus


OPTIMAL_POINTS = 1.0
ACCEPTABLE_POINTS = 0.5
FAIL_POINTS = 0.0

RuleOutcome = Tuple[float, ScoreStatus]

_OPTIMAL = (OPTIMAL_POINTS, ScoreStatus.OPTIMAL)
_ACCEPTABLE = (ACCEPTABLE_POINTS, ScoreStatus.ACCEPTABLE)
_FAIL = (FAIL_POINTS, ScoreStatus.FAIL)


def numeric_value(value: Any) -> Optional[float]:
    """The value as a finite float, or None when it cannot be scored."""
    if value is None or isinstance(value, bool):
        return None
    if not isinstance(value, (int, float)):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return float(value)


def evaluate_between(value: float, criterion: CriterionConfig) -> RuleOutcome:
    low2, low = criterion.lower_limit2, criterion.lower_limit
    high, high2 = criterion.upper_limit, criterion.upper_limit2

    if low is not None and high is not None and low <= value <= high:
        return _OPTIMAL
    if low2 is not None and low is not None and low2 <= value < low:
        return _ACCEPTABLE
    if high is not None and high2 is not None and high < value <= high2:
        return _ACCEPTABLE
    return _FAIL


def evaluate_greater(value: float, criterion: CriterionConfig) -> RuleOutcome:
    if criterion.lower_limit is not None and value >= criterion.lower_limit:
        return _OPTIMAL
    if criterion.lower_limit2 is not None and value >= criterion.lower_limit2:
        return _ACCEPTABLE
    return _FAIL


def evaluate_less(value: float, criterion: CriterionConfig) -> RuleOutcome:
    if criterion.upper_limit is not None and value <= criterion.upper_limit:
        return _OPTIMAL
    if criterion.upper_limit2 is not None and value <= criterion.upper_limit2:
        return _ACCEPTABLE
    return _FAIL


_EVALUATORS = {
    Operator.BETWEEN: evaluate_between,
    Operator.GREATER: evaluate_greater,
    Operator.LESS: evaluate_less,
}


def evaluate_criterion(value: float, criterion: CriterionConfig) -> RuleOutcome:
    """
    Score a present value against a criterion.

    Args:
        value: Observed numeric value
        criterion: Criterion configuration

    Returns:
        (points, status)
    """
    return _EVALUATORS[criterion.operator](value, criterion)
