"""
Rubric Defaults and Loading

DEFAULT_RUBRIC mirrors the stock configuration shipped with the tool.
Rubrics can also be loaded from JSON files using the camelCase keys:

{
    "classificationPoints": {"stud": 8, "flock": 6, "secondFlock": 4, "cull": 0},
    "criteria": [
        {"id": "woolMicron", "name": "Wool Micron", "operator": "less",
         "upperLimit": 19, "upperLimit2": 21, "cullIfFailed": false}
    ]
}
"""

import json
from pathlib import Path
from typing import Optional, Union

from core.config import Settings, get_settings
from core.observability.logging import get_logger
from .models import ClassificationPoints, CriterionConfig, Operator, Rubric


logger = get_logger(__name__)


def _criterion(criterion_id: str, name: str, operator: Operator, **limits) -> CriterionConfig:
    return CriterionConfig(id=criterion_id, name=name, operator=operator, **limits)


DEFAULT_RUBRIC = Rubric(
    classification_points=ClassificationPoints(stud=8, flock=6, second_flock=4, cull=0),
    criteria=[
        _criterion("w1", "W1 (First Weight)", Operator.BETWEEN),
        _criterion("w2", "W2 (Second Weight)", Operator.BETWEEN),
        _criterion("adg", "ADG (Average Daily Gain)", Operator.GREATER),
        _criterion("fleeceWeight", "Fleece Weight", Operator.GREATER),
        _criterion("cleanYield", "Clean Yield", Operator.GREATER),
        _criterion("percentShornOff", "% Shorn Off BW", Operator.BETWEEN),
        _criterion(
            "bcs", "BCS (Body Condition Score)", Operator.BETWEEN,
            lower_limit2=2, lower_limit=2.5, upper_limit=3.5, upper_limit2=4,
        ),
        _criterion("conformationScore", "Conformation Score", Operator.GREATER, lower_limit=6),
        _criterion("woolScore", "Wool Score", Operator.GREATER, lower_limit=6),
        _criterion("motherRepro", "Mother Reproduction", Operator.GREATER),
        _criterion("comfortFactor", "Comfort Factor", Operator.GREATER, lower_limit=98),
        _criterion("woolMicron", "Wool Micron", Operator.LESS, upper_limit=19),
        _criterion("cvDifference", "CV Difference", Operator.LESS, upper_limit=5),
        _criterion("fiberLength", "Fiber/Staple Length (mm)", Operator.GREATER, lower_limit=80),
    ],
)


def default_rubric() -> Rubric:
    """A fresh copy of the stock rubric."""
    return DEFAULT_RUBRIC.model_copy(deep=True)


def load_rubric(path: Union[str, Path]) -> Rubric:
    """
    Load a rubric from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist
        pydantic.ValidationError: If the rubric is malformed
    """
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    rubric = Rubric.model_validate(data)
    logger.info(f"Loaded rubric from {path}", extra_fields={"criteria": len(rubric.criteria)})
    return rubric


def save_rubric(rubric: Rubric, path: Union[str, Path]) -> Path:
    """Write a rubric as camelCase JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(rubric.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
    return path


def get_active_rubric(settings: Optional[Settings] = None) -> Rubric:
    """The rubric from DSS_RUBRIC_PATH when configured, else the default."""
    settings = settings or get_settings()
    if settings.rubric_path is not None:
        return load_rubric(settings.rubric_path)
    return default_rubric()
