"""API v1 router aggregating all endpoint routers.

Knowledge:
  /api/v1/knowledge/status, /sections, /search

Reference views:
  /api/v1/medications (search, by-condition)
  /api/v1/symptoms (search, emergency)
  /api/v1/nutrition (requirements, food-safety, morning-sickness)
  /api/v1/timeline/weeks/{week}

Assistant:
  /api/v1/chat, /chat/messages

Tracker:
  /api/v1/tracker, /tracker/due-date
"""

from fastapi import APIRouter

from companion.api.v1.endpoints import (
    chat,
    knowledge,
    medications,
    nutrition,
    symptoms,
    timeline,
    tracker,
)

api_router = APIRouter()

# -------------------------------------------------------------------------
# Knowledge base (sections, retrieval)
# -------------------------------------------------------------------------
api_router.include_router(knowledge.router, prefix="/knowledge", tags=["knowledge"])

# -------------------------------------------------------------------------
# Reference views (structured lookups)
# -------------------------------------------------------------------------
api_router.include_router(medications.router, prefix="/medications", tags=["medications"])
api_router.include_router(symptoms.router, prefix="/symptoms", tags=["symptoms"])
api_router.include_router(nutrition.router, prefix="/nutrition", tags=["nutrition"])
api_router.include_router(timeline.router, prefix="/timeline", tags=["timeline"])

# -------------------------------------------------------------------------
# Assistant
# -------------------------------------------------------------------------
api_router.include_router(chat.router, prefix="/chat", tags=["chat"])

# -------------------------------------------------------------------------
# Due date tracker
# -------------------------------------------------------------------------
api_router.include_router(tracker.router, prefix="/tracker", tags=["tracker"])
