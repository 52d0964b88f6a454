"""
Scoring Engine

Evaluates fused animals against a rubric:
1. Score every enabled criterion in configured order (breakdown entry each)
2. Sum points into the DSS mark
3. Record the first failed cull criterion as the cull reason
4. Classify by thresholds; a cull reason forces Cull

`score_animal` is a pure function; `ScoringEngine` adds classification,
logging and metrics for a whole herd.
"""

import time
from typing import List, Optional, Sequence

from pydantic import Field

from animal_registry.fusion import EventData, FusionEngine
from animal_registry.models import Animal, FusionReport
from core.observability.logging import get_logger, with_correlation
from core.observability.metrics import (
    record_animal_scored,
    record_processing_time,
    record_scoring_run,
)
from .models import (
    MISSING_VALUE,
    Classification,
    ClassificationPoints,
    Rubric,
    RubricModel,
    ScoreBreakdownEntry,
    ScoredAnimal,
    ScoreResult,
    ScoreStatus,
)
from .rubric import get_active_rubric
from .rules import FAIL_POINTS, evaluate_criterion, numeric_value
from .statistics import HerdStatistics, herd_statistics


logger = get_logger(__name__)

CULL_REASON_TEMPLATE = "Failed cull criterion: {name}"


def score_animal(animal: Animal, rubric: Rubric) -> ScoreResult:
    """
    Score one animal.

    Missing values score 0 with status `missing` and, on a cull criterion,
    set the cull reason just like a failed value. Only the first cull
    criterion in configured order sets the reason.

    Args:
        animal: Fused animal record
        rubric: Rubric to evaluate

    Returns:
        ScoreResult with total, cull reason and breakdown
    """
    total = 0.0
    cull_reason: Optional[str] = None
    breakdown: List[ScoreBreakdownEntry] = []

    for criterion in rubric.criteria:
        if not criterion.enabled:
            continue

        value = numeric_value(animal.metric(criterion.id))
        if value is None:
            points, status = FAIL_POINTS, ScoreStatus.MISSING
            entry = ScoreBreakdownEntry(
                criterion=criterion.name, value=MISSING_VALUE, points=points, status=status,
            )
        else:
            points, status = evaluate_criterion(value, criterion)
            entry = ScoreBreakdownEntry(
                criterion=criterion.name, value=value, points=points, status=status,
            )

        if criterion.cull_if_failed and points == FAIL_POINTS and cull_reason is None:
            cull_reason = CULL_REASON_TEMPLATE.format(name=criterion.name)

        total += points
        breakdown.append(entry)

    return ScoreResult(dssmark=total, cull_reason=cull_reason, breakdown=breakdown)


def classify(
    dssmark: float,
    cull_reason: Optional[str],
    points: ClassificationPoints,
) -> Classification:
    """Highest tier whose minimum the mark reaches; any cull reason forces Cull."""
    if cull_reason:
        return Classification.CULL
    if dssmark >= points.stud:
        return Classification.STUD
    if dssmark >= points.flock:
        return Classification.FLOCK
    if dssmark >= points.second_flock:
        return Classification.SECOND_FLOCK
    return Classification.CULL


class ScoringEngine:
    """
    Scores and classifies a list of animals against one rubric.

    Usage:
        engine = ScoringEngine(rubric)
        scored = engine.evaluate(fusion_result.animals)
    """

    def __init__(self, rubric: Optional[Rubric] = None):
        """
        Initialize the scoring engine.

        Args:
            rubric: Rubric to apply (defaults to the active rubric)
        """
        self.rubric = rubric or get_active_rubric()

    def score(self, animal: Animal) -> ScoredAnimal:
        result = score_animal(animal, self.rubric)
        classification = classify(
            result.dssmark, result.cull_reason, self.rubric.classification_points,
        )
        return ScoredAnimal(
            **animal.model_dump(include=set(Animal.model_fields)),
            dssmark=result.dssmark,
            classification=classification,
            cull_reason=result.cull_reason,
            breakdown=result.breakdown,
        )

    def evaluate(self, animals: Sequence[Animal]) -> List[ScoredAnimal]:
        start_time = time.time()
        scored = []

        with with_correlation(stage="scoring"):
            for animal in animals:
                scored_animal = self.score(animal)
                record_animal_scored(scored_animal.classification.value, scored_animal.cull_reason)
                if scored_animal.cull_reason:
                    logger.debug(
                        scored_animal.cull_reason,
                        extra_fields={"animal_id": scored_animal.id},
                    )
                scored.append(scored_animal)

            duration_ms = (time.time() - start_time) * 1000
            record_scoring_run()
            record_processing_time("scoring", duration_ms)
            logger.info(
                f"Scored {len(scored)} animals against {len(self.rubric.enabled_criteria())} criteria",
                extra_fields={"duration_ms": round(duration_ms, 2)},
            )

        return scored


class HerdEvaluation(RubricModel):
    """Result of a full calculate run."""
    animals: List[ScoredAnimal] = Field(default_factory=list)
    statistics: HerdStatistics = Field(default_factory=HerdStatistics)
    fusion: FusionReport


def evaluate_herd(
    event_data: EventData,
    rubric: Optional[Rubric] = None,
    first_weigh_process_id: Optional[str] = None,
) -> HerdEvaluation:
    """
    Fuse event batches and score every animal.

    Each call builds a fresh registry from the full input.
    """
    fusion = FusionEngine(first_weigh_process_id=first_weigh_process_id).fuse(event_data)

    with with_correlation(run_id=fusion.report.run_id):
        scored = ScoringEngine(rubric).evaluate(fusion.animals)

    return HerdEvaluation(
        animals=scored,
        statistics=herd_statistics(scored),
        fusion=fusion.report,
    )
