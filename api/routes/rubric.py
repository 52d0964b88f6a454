"""Rubric endpoints."""

from fastapi import APIRouter

from scoring_engine import Rubric, default_rubric, get_active_rubric


router = APIRouter()


@router.get("/default", response_model=Rubric)
async def get_default_rubric() -> Rubric:
    """The stock rubric shipped with the tool."""
    return default_rubric()


@router.get("/active", response_model=Rubric)
async def get_configured_rubric() -> Rubric:
    """The rubric used when a request does not supply one."""
    return get_active_rubric()
