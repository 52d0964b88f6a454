"""
Scoring Engine Package

Evaluates fused animal records against a configurable, tiered rubric.

Features:
- between / greater / less operators with optimal and acceptable bands
- Per-criterion audit breakdown (optimal, acceptable, fail, missing)
- Mandatory-cull criteria (first failure sets the cull reason)
- Stud / Flock / 2nd Flock / Cull classification
- Herd statistics and per-criterion averages

Usage:
    from scoring_engine import ScoringEngine, evaluate_herd, score_animal

    # Whole run: fusion + scoring
    evaluation = evaluate_herd(event_data, rubric)

    # One animal
    result = score_animal(animal, rubric)
"""

from .models import (
    # Enums
    Operator,
    ScoreStatus,
    Classification,

    # Configuration
    CriterionConfig,
    ClassificationPoints,
    Rubric,

    # Results
    ScoreBreakdownEntry,
    ScoreResult,
    ScoredAnimal,
    MISSING_VALUE,
)

from .rules import (
    evaluate_criterion,
    evaluate_between,
    evaluate_greater,
    evaluate_less,
)

from .rubric import (
    DEFAULT_RUBRIC,
    default_rubric,
    load_rubric,
    save_rubric,
    get_active_rubric,
)

from .engine import (
    ScoringEngine,
    HerdEvaluation,
    score_animal,
    classify,
    evaluate_herd,
)

from .statistics import (
    HerdStatistics,
    CriterionAverage,
    herd_statistics,
    criteria_averages,
)

__all__ = [
    # Enums
    "Operator",
    "ScoreStatus",
    "Classification",

    # Configuration
    "CriterionConfig",
    "ClassificationPoints",
    "Rubric",
    "DEFAULT_RUBRIC",
    "default_rubric",
    "load_rubric",
    "save_rubric",
    "get_active_rubric",

    # Results
    "ScoreBreakdownEntry",
    "ScoreResult",
    "ScoredAnimal",
    "MISSING_VALUE",

    # Engine
    "ScoringEngine",
    "HerdEvaluation",
    "score_animal",
    "classify",
    "evaluate_herd",

    # Rules
    "evaluate_criterion",
    "evaluate_between",
    "evaluate_greater",
    "evaluate_less",

    # Statistics
    "HerdStatistics",
    "CriterionAverage",
    "herd_statistics",
    "criteria_averages",
]
