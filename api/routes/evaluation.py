"""Evaluation endpoints.

POST /evaluate runs a full calculate: fusion of all supplied event batches
followed by scoring and classification.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from animal_registry import Animal
from core.observability.logging import get_logger, with_correlation
from scoring_engine import (
    CriterionAverage,
    HerdEvaluation,
    Rubric,
    criteria_averages,
    evaluate_herd,
)


router = APIRouter()
logger = get_logger(__name__)


class EvaluateRequest(BaseModel):
    """Event batches keyed by batch name, plus an optional rubric."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    event_data: Dict[str, List[Dict[str, Any]]] = Field(default_factory=dict)
    rubric: Optional[Rubric] = None


class CriteriaStatisticsRequest(BaseModel):
    animals: List[Animal] = Field(default_factory=list)


@router.post("/evaluate", response_model=HerdEvaluation)
def evaluate(request: EvaluateRequest) -> HerdEvaluation:
    """Fuse the event batches and score every resulting animal."""
    with with_correlation(stage="api"):
        logger.info(
            "Evaluate request",
            extra_fields={
                "batches": {name: len(rows) for name, rows in request.event_data.items()},
                "custom_rubric": request.rubric is not None,
            },
        )
        return evaluate_herd(request.event_data, request.rubric)


@router.post("/statistics/criteria", response_model=Dict[str, CriterionAverage])
def criteria_statistics(request: CriteriaStatisticsRequest) -> Dict[str, CriterionAverage]:
    """Observed spread per criterion field, for tuning rubric limits."""
    return criteria_averages(request.animals)
