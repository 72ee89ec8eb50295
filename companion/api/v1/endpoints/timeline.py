"""Pregnancy timeline endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, status

from companion.api.deps import get_knowledge_service
from companion.knowledge.models import TimelineEntry
from companion.knowledge.service import KnowledgeService

router = APIRouter()


@router.get("/weeks/{week}", response_model=TimelineEntry)
async def get_week(
    service: Annotated[KnowledgeService, Depends(get_knowledge_service)],
    week: int = Path(..., ge=1, le=42),
) -> TimelineEntry:
    """Timeline entry covering a gestational week.

    Raises:
        HTTPException: If no timeline entry covers the week.
    """
    entry = service.lookups.get_week_info(week)
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No timeline information for week {week}",
        )
    return entry
