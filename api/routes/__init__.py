"""API Routes Package."""

from api.routes import evaluation, health, rubric

__all__ = [
    "evaluation",
    "health",
    "rubric",
]
