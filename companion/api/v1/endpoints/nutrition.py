"""Nutrition and food safety endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from companion.api.deps import get_knowledge_service
from companion.knowledge.models import (
    FoodSafety,
    MorningSicknessManagement,
    NutritionalRequirements,
)
from companion.knowledge.service import KnowledgeService

router = APIRouter()


@router.get("", response_model=NutritionalRequirements)
async def get_requirements(
    service: Annotated[KnowledgeService, Depends(get_knowledge_service)],
) -> NutritionalRequirements:
    """Daily macro targets and weight gain by pre-pregnancy BMI."""
    return service.lookups.get_nutritional_requirements()


@router.get("/food-safety", response_model=FoodSafety | None)
async def get_food_safety(
    service: Annotated[KnowledgeService, Depends(get_knowledge_service)],
) -> FoodSafety | None:
    return service.lookups.get_food_safety()


@router.get("/morning-sickness", response_model=MorningSicknessManagement | None)
async def get_morning_sickness(
    service: Annotated[KnowledgeService, Depends(get_knowledge_service)],
) -> MorningSicknessManagement | None:
    return service.lookups.get_morning_sickness_guidance()
