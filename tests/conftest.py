"""Pytest configuration and fixtures."""

import copy
from types import SimpleNamespace
from typing import Any, AsyncGenerator, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from companion.knowledge.loader import parse_knowledge_document
from companion.knowledge.models import KnowledgeDocument
from companion.knowledge.service import KnowledgeService


# -------------------------------------------------------------------------
# Knowledge document fixtures
# -------------------------------------------------------------------------

KNOWLEDGE_PAYLOAD: dict[str, Any] = {
    "pregnancyKnowledgeGraph": {
        "nutritionalRequirements": {
            "dailyMacros": [
                {"nutrient": "Protein", "amount": "71", "unit": "g", "category": "Macronutrient"},
                {"nutrient": "Iron", "amount": "27", "unit": "mg", "category": "Mineral"},
            ],
            "weightGainRecommendations": [
                {
                    "prePregnancyBMI": "Normal weight",
                    "bmiRange": "18.5-24.9",
                    "recommendedGain": "25-35",
                    "unit": "lbs",
                },
            ],
        },
        "foodSafety": {
            "seafoodGuidelines": {"unsafe": ["Shark", "Swordfish"]},
            "avoidFoods": [{"item": "Raw eggs"}, {"item": "Unpasteurized cheese"}],
        },
        "morningSicknessManagement": {
            "whatToEat": ["Crackers", "Ginger tea"],
            "avoidFoods": ["Greasy food"],
            "eatingTips": ["Eat small meals"],
        },
        "pregnancyTimeline": {
            "weeks9to12": {
                "trimester": "First",
                "title": "Weeks 9-12",
                "commonSymptoms": [
                    {"symptom": "Nausea", "status": "peaking"},
                    {"symptom": "Fatigue", "status": "common"},
                ],
                "exercise": {
                    "name": "Walking",
                    "benefits": "Boosts energy",
                    "instructions": ["Warm up", "Walk 20 minutes"],
                },
            },
            "weeks13to16": {
                "trimester": "Second",
                "title": "Weeks 13-16",
                "commonSymptoms": [{"symptom": "Nausea", "status": "improving"}],
            },
        },
        "symptomTroubleshooting": {
            "categories": [
                {
                    "category": "Bleeding",
                    "symptoms": [
                        {
                            "sign": "Light spotting",
                            "urgency": "Monitor",
                            "action": "Rest",
                            "severity": "medium",
                        },
                        {
                            "sign": "Heavy bleeding",
                            "urgency": "Emergency",
                            "action": "Call 911",
                            "severity": "high",
                        },
                    ],
                },
                {
                    "category": "Swelling",
                    "symptoms": [
                        {
                            "sign": "Sudden swelling",
                            "urgency": "Call now",
                            "action": "Check blood pressure",
                            "severity": "high",
                        },
                        {
                            "sign": "Ankle swelling",
                            "urgency": "Routine",
                            "action": "Elevate feet",
                            "severity": "low",
                        },
                    ],
                },
            ]
        },
        "medications": {
            "byCondition": [
                {
                    "condition": "Pain",
                    "medications": [
                        {
                            "drug": "Acetaminophen",
                            "brand": "Tylenol",
                            "safety": "🟢",
                            "safetyLevel": "Generally safe",
                        },
                        {
                            "drug": "Ibuprofen",
                            "brand": "Advil",
                            "safety": "🔴",
                            "safetyLevel": "Avoid",
                            "note": "Especially after 20 weeks",
                        },
                    ],
                },
                {
                    "condition": "Allergies",
                    "medications": [
                        {"drug": "Loratadine", "safety": "🟢", "safetyLevel": "Generally safe"},
                    ],
                },
            ]
        },
    }
}


@pytest.fixture
def knowledge_payload() -> dict[str, Any]:
    """A fresh copy of the test knowledge document payload."""
    return copy.deepcopy(KNOWLEDGE_PAYLOAD)


@pytest.fixture
def document(knowledge_payload: dict[str, Any]) -> KnowledgeDocument:
    return parse_knowledge_document(knowledge_payload)


# -------------------------------------------------------------------------
# OpenAI client fakes
# -------------------------------------------------------------------------


def embedding_response(vector: list[float]) -> SimpleNamespace:
    """Shape of ``client.embeddings.create`` responses."""
    return SimpleNamespace(data=[SimpleNamespace(embedding=vector)])


def chat_response(content: str | None) -> SimpleNamespace:
    """Shape of ``client.chat.completions.create`` responses."""
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))]
    )


def make_openai_client(
    embed: Callable[[str], list[float]] | None = None,
    reply: str | None = "This is general advice.",
) -> MagicMock:
    """Build a fake AsyncOpenAI client.

    Args:
        embed: Maps input text to a vector. Defaults to a constant vector.
        reply: Content returned by chat completions.
    """
    embed = embed or (lambda text: [1.0, 0.0, 0.0])

    async def create_embedding(*, model: str, input: str) -> SimpleNamespace:
        return embedding_response(embed(input))

    client = MagicMock()
    client.embeddings.create = AsyncMock(side_effect=create_embedding)
    client.chat.completions.create = AsyncMock(return_value=chat_response(reply))
    return client


@pytest.fixture
def openai_client() -> MagicMock:
    return make_openai_client()


# -------------------------------------------------------------------------
# Application fixtures
# -------------------------------------------------------------------------


@pytest.fixture
def knowledge_service(document: KnowledgeDocument) -> KnowledgeService:
    """Service without an OpenAI credential (keyword-only mode)."""
    return KnowledgeService(document)


@pytest.fixture
def app(knowledge_service: KnowledgeService, tmp_path) -> FastAPI:
    """FastAPI app wired to the test knowledge service and a temp preferences file."""
    from companion.api.deps import get_due_date_store
    from companion.main import app as main_app
    from companion.services.pregnancy_tracker import DueDateStore

    store = DueDateStore(tmp_path / "preferences.json")

    main_app.state.knowledge_service = knowledge_service
    main_app.dependency_overrides[get_due_date_store] = lambda: store
    yield main_app
    main_app.dependency_overrides.clear()


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
