"""
Scoring Engine Models

Defines data structures for:
- Rubric configuration (criteria, operators, classification thresholds)
- Per-criterion breakdown entries and score results
- Scored animals handed to rendering/export collaborators
"""

from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from animal_registry.models import Animal


MISSING_VALUE = "N/A"


class Operator(str, Enum):
    """How a criterion's limits are read."""
    BETWEEN = "between"   # optimal inside [lowerLimit, upperLimit]
    GREATER = "greater"   # optimal at or above lowerLimit
    LESS = "less"         # optimal at or below upperLimit


class ScoreStatus(str, Enum):
    OPTIMAL = "optimal"
    ACCEPTABLE = "acceptable"
    FAIL = "fail"
    MISSING = "missing"


class Classification(str, Enum):
    """Classification tiers, best first."""
    STUD = "Stud"
    FLOCK = "Flock"
    SECOND_FLOCK = "2nd Flock"
    CULL = "Cull"


class RubricModel(BaseModel):
    """Base model: snake_case attributes, camelCase on the wire."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# =============================================================================
# Rubric Configuration
# =============================================================================

class CriterionConfig(RubricModel):
    """
    One scoring criterion.

    Attributes:
        id: Animal field the criterion reads (e.g. "woolMicron")
        name: Display name, also used in cull reasons
        enabled: Disabled criteria are skipped entirely
        operator: between / greater / less
        lower_limit2, lower_limit, upper_limit, upper_limit2: Optional limits,
            ordered lower_limit2 <= lower_limit <= upper_limit <= upper_limit2
        cull_if_failed: A 0-point result forces the animal to Cull
    """
    id: str
    name: str
    enabled: bool = True
    operator: Operator = Operator.BETWEEN
    lower_limit2: Optional[float] = None
    lower_limit: Optional[float] = None
    upper_limit: Optional[float] = None
    upper_limit2: Optional[float] = None
    cull_if_failed: bool = False

    @model_validator(mode="after")
    def _check_limit_order(self) -> "CriterionConfig":
        limits = [
            (name, value)
            for name, value in (
                ("lowerLimit2", self.lower_limit2),
                ("lowerLimit", self.lower_limit),
                ("upperLimit", self.upper_limit),
                ("upperLimit2", self.upper_limit2),
            )
            if value is not None
        ]
        for (low_name, low), (high_name, high) in zip(limits, limits[1:]):
            if low > high:
                raise ValueError(
                    f"Criterion '{self.id}': {low_name} ({low}) must not exceed {high_name} ({high})"
                )
        return self


class ClassificationPoints(RubricModel):
    """Minimum total points per classification tier."""
    stud: float = 8
    flock: float = 6
    second_flock: float = 4
    cull: float = 0

    @model_validator(mode="after")
    def _check_descending(self) -> "ClassificationPoints":
        if not (self.stud >= self.flock >= self.second_flock >= self.cull):
            raise ValueError("Classification points must descend: stud >= flock >= secondFlock >= cull")
        return self


class Rubric(RubricModel):
    """Classification thresholds plus ordered criteria."""
    classification_points: ClassificationPoints = Field(default_factory=ClassificationPoints)
    criteria: List[CriterionConfig] = Field(default_factory=list)

    def enabled_criteria(self) -> List[CriterionConfig]:
        return [c for c in self.criteria if c.enabled]

    def criterion(self, criterion_id: str) -> Optional[CriterionConfig]:
        for criterion in self.criteria:
            if criterion.id == criterion_id:
                return criterion
        return None


# =============================================================================
# Score Results
# =============================================================================

class ScoreBreakdownEntry(RubricModel):
    """Audit line for one evaluated criterion."""
    criterion: str
    value: Union[float, str] = MISSING_VALUE
    points: float = 0.0
    status: ScoreStatus = ScoreStatus.MISSING


class ScoreResult(RubricModel):
    """Total points, first cull reason and the ordered breakdown."""
    dssmark: float = 0.0
    cull_reason: Optional[str] = None
    breakdown: List[ScoreBreakdownEntry] = Field(default_factory=list)


class ScoredAnimal(Animal):
    """An animal with its score and classification. Read-only."""
    model_config = ConfigDict(frozen=True)

    dssmark: float = 0.0
    classification: Classification = Classification.CULL
    cull_reason: Optional[str] = None
    breakdown: List[ScoreBreakdownEntry] = Field(default_factory=list)
