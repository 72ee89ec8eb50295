"""Symptom troubleshooting endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from companion.api.deps import get_knowledge_service
from companion.knowledge.models import SymptomMatch
from companion.knowledge.service import KnowledgeService

router = APIRouter()


@router.get("", response_model=list[SymptomMatch])
async def search_symptoms(
    service: Annotated[KnowledgeService, Depends(get_knowledge_service)],
    q: str = Query(..., description="Symptom sign (substring, case-insensitive)"),
) -> list[SymptomMatch]:
    return service.lookups.get_symptom_info(q)


@router.get("/emergency", response_model=list[SymptomMatch])
async def emergency_symptoms(
    service: Annotated[KnowledgeService, Depends(get_knowledge_service)],
) -> list[SymptomMatch]:
    """High-severity symptoms that need immediate care."""
    return service.lookups.get_emergency_symptoms()
