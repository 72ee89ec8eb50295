"""Medication safety endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from companion.api.deps import get_knowledge_service
from companion.knowledge.models import ConditionMedications, MedicationMatch
from companion.knowledge.service import KnowledgeService

router = APIRouter()


@router.get("", response_model=list[MedicationMatch])
async def search_medications(
    service: Annotated[KnowledgeService, Depends(get_knowledge_service)],
    q: str = Query(..., description="Drug or brand name (substring, case-insensitive)"),
) -> list[MedicationMatch]:
    """Check pregnancy safety for a medication by drug or brand name."""
    return service.lookups.check_medication_safety(q)


@router.get("/by-condition", response_model=list[ConditionMedications])
async def list_by_condition(
    service: Annotated[KnowledgeService, Depends(get_knowledge_service)],
) -> list[ConditionMedications]:
    return service.lookups.list_medications_by_condition()
