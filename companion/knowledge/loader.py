"""Knowledge document loader.

Fetches the pregnancy knowledge graph from a local file or an HTTP(S) URL and
validates it into a ``KnowledgeDocument``. Validation is done per domain and
per list item, so a malformed slice is dropped (and logged) without taking the
rest of the document down with it.
"""

import json
import logging
from pathlib import Path
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from companion.knowledge.models import (
    AvoidFood,
    ConditionMedications,
    FoodSafety,
    KnowledgeDocument,
    Medication,
    MedicationCatalog,
    MorningSicknessManagement,
    Nutrient,
    NutritionalRequirements,
    Symptom,
    SymptomCategory,
    SymptomTroubleshooting,
    TimelineEntry,
    WeightGainRecommendation,
)

logger = logging.getLogger(__name__)

ROOT_KEY = "pregnancyKnowledgeGraph"
FETCH_TIMEOUT_SECONDS = 10.0

ModelT = TypeVar("ModelT", bound=BaseModel)


async def load_knowledge_document(source: str | Path) -> KnowledgeDocument:
    """Fetch and validate the knowledge document.

    Args:
        source: Filesystem path or http(s) URL of the JSON document.

    Returns:
        The validated document. An empty document is returned when the
        source cannot be fetched or decoded, so callers always get a value.
    """
    try:
        raw = await _fetch_source(str(source))
    except (httpx.HTTPError, OSError, ValueError) as e:
        logger.error(f"Failed to load knowledge document from {source}: {e}")
        return KnowledgeDocument()

    document = parse_knowledge_document(raw)
    if document.is_empty:
        logger.warning(f"Knowledge document from {source} contained no usable domains")
    return document


def parse_knowledge_document(raw: Any) -> KnowledgeDocument:
    """Validate a decoded JSON payload into a ``KnowledgeDocument``.

    Accepts either the bare graph or one wrapped in ``pregnancyKnowledgeGraph``.

    Args:
        raw: Decoded JSON value.

    Returns:
        Document containing every domain that validated.
    """
    if isinstance(raw, dict) and ROOT_KEY in raw:
        raw = raw[ROOT_KEY]

    if not isinstance(raw, dict):
        logger.warning(f"Knowledge document root must be an object, got {type(raw).__name__}")
        return KnowledgeDocument()

    return KnowledgeDocument(
        nutritional_requirements=_parse_nutrition(raw.get("nutritionalRequirements")),
        food_safety=_parse_food_safety(raw.get("foodSafety")),
        morning_sickness_management=_validate(
            MorningSicknessManagement,
            raw.get("morningSicknessManagement"),
            "morningSicknessManagement",
        ),
        pregnancy_timeline=_parse_timeline(raw.get("pregnancyTimeline")),
        symptom_troubleshooting=_parse_symptoms(raw.get("symptomTroubleshooting")),
        medications=_parse_medications(raw.get("medications")),
    )


async def _fetch_source(source: str) -> Any:
    if source.startswith(("http://", "https://")):
        async with httpx.AsyncClient(timeout=FETCH_TIMEOUT_SECONDS) as client:
            response = await client.get(source)
            response.raise_for_status()
            return response.json()

    return json.loads(Path(source).read_text(encoding="utf-8"))


def _validate(model: type[ModelT], value: Any, where: str) -> ModelT | None:
    """Validate a single object, logging and returning None on failure."""
    if value is None:
        logger.warning(f"Knowledge document is missing '{where}'")
        return None
    try:
        return model.model_validate(value)
    except ValidationError as e:
        logger.warning(f"Skipping malformed '{where}': {e.error_count()} validation error(s)")
        return None


def _validate_items(model: type[ModelT], items: Any, where: str) -> list[ModelT]:
    """Validate each element of a list independently, dropping bad ones."""
    if items is None:
        return []
    if not isinstance(items, list):
        logger.warning(f"Expected a list at '{where}', got {type(items).__name__}")
        return []

    valid: list[ModelT] = []
    for i, item in enumerate(items):
        parsed = _validate(model, item, f"{where}[{i}]")
        if parsed is not None:
            valid.append(parsed)
    return valid


def _as_dict(value: Any, where: str) -> dict[str, Any] | None:
    if value is None:
        logger.warning(f"Knowledge document is missing '{where}'")
        return None
    if not isinstance(value, dict):
        logger.warning(f"Expected an object at '{where}', got {type(value).__name__}")
        return None
    return value


def _parse_nutrition(value: Any) -> NutritionalRequirements | None:
    raw = _as_dict(value, "nutritionalRequirements")
    if raw is None:
        return None
    return NutritionalRequirements(
        daily_macros=_validate_items(
            Nutrient, raw.get("dailyMacros"), "nutritionalRequirements.dailyMacros"
        ),
        weight_gain_recommendations=_validate_items(
            WeightGainRecommendation,
            raw.get("weightGainRecommendations"),
            "nutritionalRequirements.weightGainRecommendations",
        ),
    )


def _parse_food_safety(value: Any) -> FoodSafety | None:
    raw = _as_dict(value, "foodSafety")
    if raw is None:
        return None
    avoid_foods = _validate_items(AvoidFood, raw.get("avoidFoods"), "foodSafety.avoidFoods")
    return _validate(
        FoodSafety,
        {"seafoodGuidelines": raw.get("seafoodGuidelines"), "avoidFoods": avoid_foods},
        "foodSafety",
    )


def _parse_timeline(value: Any) -> dict[str, TimelineEntry]:
    raw = _as_dict(value, "pregnancyTimeline")
    if raw is None:
        return {}

    timeline: dict[str, TimelineEntry] = {}
    for key, entry in raw.items():
        parsed = _validate(TimelineEntry, entry, f"pregnancyTimeline.{key}")
        if parsed is not None:
            timeline[key] = parsed
    return timeline


def _parse_symptoms(value: Any) -> SymptomTroubleshooting | None:
    raw = _as_dict(value, "symptomTroubleshooting")
    if raw is None:
        return None

    categories: list[SymptomCategory] = []
    raw_categories = raw.get("categories")
    if not isinstance(raw_categories, list):
        logger.warning("Expected a list at 'symptomTroubleshooting.categories'")
        return SymptomTroubleshooting()

    for i, category in enumerate(raw_categories):
        where = f"symptomTroubleshooting.categories[{i}]"
        if not isinstance(category, dict) or not isinstance(category.get("category"), str):
            logger.warning(f"Skipping malformed '{where}': missing category name")
            continue
        categories.append(
            SymptomCategory(
                category=category["category"],
                symptoms=_validate_items(Symptom, category.get("symptoms"), f"{where}.symptoms"),
            )
        )
    return SymptomTroubleshooting(categories=categories)


def _parse_medications(value: Any) -> MedicationCatalog | None:
    raw = _as_dict(value, "medications")
    if raw is None:
        return None

    groups: list[ConditionMedications] = []
    raw_groups = raw.get("byCondition")
    if not isinstance(raw_groups, list):
        logger.warning("Expected a list at 'medications.byCondition'")
        return MedicationCatalog()

    for i, group in enumerate(raw_groups):
        where = f"medications.byCondition[{i}]"
        if not isinstance(group, dict) or not isinstance(group.get("condition"), str):
            logger.warning(f"Skipping malformed '{where}': missing condition name")
            continue
        groups.append(
            ConditionMedications(
                condition=group["condition"],
                medications=_validate_items(
                    Medication, group.get("medications"), f"{where}.medications"
                ),
            )
        )
    return MedicationCatalog(by_condition=groups)
