"""Due date and current week endpoints."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from companion.api.deps import get_due_date_store, get_knowledge_service
from companion.knowledge.models import TimelineEntry
from companion.knowledge.service import KnowledgeService
from companion.services.pregnancy_tracker import DueDateStore, calculate_current_week

router = APIRouter()


class DueDateUpdate(BaseModel):
    due_date: date


class TrackerResponse(BaseModel):
    """Stored due date, the week it implies, and that week's timeline entry."""

    due_date: date | None
    current_week: int
    week_info: TimelineEntry | None


def _tracker_response(service: KnowledgeService, due_date: date | None) -> TrackerResponse:
    week = calculate_current_week(due_date)
    return TrackerResponse(
        due_date=due_date,
        current_week=week,
        week_info=service.lookups.get_week_info(week),
    )


@router.get("", response_model=TrackerResponse)
async def get_tracker(
    service: Annotated[KnowledgeService, Depends(get_knowledge_service)],
    store: Annotated[DueDateStore, Depends(get_due_date_store)],
) -> TrackerResponse:
    return _tracker_response(service, store.load())


@router.put("/due-date", response_model=TrackerResponse)
async def set_due_date(
    update: DueDateUpdate,
    service: Annotated[KnowledgeService, Depends(get_knowledge_service)],
    store: Annotated[DueDateStore, Depends(get_due_date_store)],
) -> TrackerResponse:
    store.save(update.due_date)
    return _tracker_response(service, update.due_date)
