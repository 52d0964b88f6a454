"""
Herd Statistics

Aggregates over scored animals for dashboards and rubric tuning:
- herd_statistics: counts per classification, metric averages, mark distribution
- criteria_averages: avg/min/max/count per criterion field
"""

import math
from collections import Counter
from typing import Dict, List, Sequence

from pydantic import Field

from animal_registry.models import Animal
from .models import RubricModel, ScoredAnimal


SUMMARY_METRICS = ["w1", "w2", "adg", "fleeceWeight", "woolMicron", "bcs", "dssmark"]

CRITERIA_FIELDS = [
    "w1", "w2", "adg", "fleeceWeight", "cleanYield", "percentShornOff",
    "bcs", "conformationScore", "woolScore", "motherRepro", "comfortFactor",
    "woolMicron", "cvDifference", "fiberLength",
]


class HerdStatistics(RubricModel):
    total: int = 0
    by_classification: Dict[str, int] = Field(default_factory=dict)
    averages: Dict[str, float] = Field(default_factory=dict)
    distributions: Dict[str, Dict[int, int]] = Field(default_factory=dict)


class CriterionAverage(RubricModel):
    avg: float
    min: float
    max: float
    count: int


def _values(animals: Sequence[Animal], name: str) -> List[float]:
    values = []
    for animal in animals:
        if name == "dssmark":
            value = getattr(animal, "dssmark", None)
            if isinstance(value, (int, float)) and not math.isnan(value):
                values.append(float(value))
            continue
        value = animal.numeric_metric(name)
        if value is not None:
            values.append(value)
    return values


def herd_statistics(animals: Sequence[ScoredAnimal]) -> HerdStatistics:
    """Summary figures for a scored herd. Metrics with no values average to 0."""
    if not animals:
        return HerdStatistics()

    by_classification = Counter(animal.classification.value for animal in animals)

    averages = {}
    for name in SUMMARY_METRICS:
        values = _values(animals, name)
        averages[name] = sum(values) / len(values) if values else 0.0

    distribution = Counter(math.floor(animal.dssmark or 0) for animal in animals)

    return HerdStatistics(
        total=len(animals),
        by_classification=dict(by_classification),
        averages=averages,
        distributions={"dssmark": dict(sorted(distribution.items()))},
    )


def criteria_averages(animals: Sequence[Animal]) -> Dict[str, CriterionAverage]:
    """Per-field spread of observed values; fields without values are omitted."""
    result = {}
    for name in CRITERIA_FIELDS:
        values = _values(animals, name)
        if values:
            result[name] = CriterionAverage(
                avg=sum(values) / len(values),
                min=min(values),
                max=max(values),
                count=len(values),
            )
    return result
