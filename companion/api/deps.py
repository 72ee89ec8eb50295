"""Shared FastAPI dependencies."""

from fastapi import Request

from companion.core.config import get_settings
from companion.knowledge.service import KnowledgeService
from companion.services.pregnancy_tracker import DueDateStore


def get_knowledge_service(request: Request) -> KnowledgeService:
    """Return the knowledge service created during application startup."""
    return request.app.state.knowledge_service


def get_due_date_store() -> DueDateStore:
    return DueDateStore(get_settings().preferences_path)
