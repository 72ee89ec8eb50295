"""Section builder: flattens the knowledge document into retrievable text slices.

Each slice is rendered independently. A domain that is missing from the
document is skipped, and a single timeline entry, symptom or medication that
fails to render is skipped on its own, so its siblings are still available
to retrieval.
"""

import logging
import re
from functools import partial
from typing import Callable, Iterable

from companion.knowledge.models import (
    KnowledgeDocument,
    Medication,
    Section,
    Symptom,
    TimelineEntry,
)

logger = logging.getLogger(__name__)

SEPARATOR = ", "

_WHITESPACE_RE = re.compile(r"\s+")
_RENDER_ERRORS = (AttributeError, KeyError, TypeError, ValueError)


def slugify(value: str) -> str:
    """Lower-case a name and turn whitespace runs into hyphens."""
    return _WHITESPACE_RE.sub("-", value.strip().lower())


def build_sections(document: KnowledgeDocument) -> list[Section]:
    """Build the ordered list of sections for a knowledge document.

    The output is deterministic: the same document always yields the same ids
    and byte-identical content, in the same order.

    Args:
        document: Validated knowledge document.

    Returns:
        Sections in construction order (nutrition, food safety, morning
        sickness, timeline, symptoms, medications).
    """
    builders: list[tuple[str, Callable[[KnowledgeDocument], Iterable[Section]]]] = [
        ("nutrition-daily", _nutrition_daily),
        ("nutrition-weight", _nutrition_weight),
        ("food-safety", _food_safety),
        ("morning-sickness", _morning_sickness),
        ("timeline", _timeline),
        ("symptoms", _symptoms),
        ("medications", _medications),
    ]

    sections: list[Section] = []
    for name, builder in builders:
        try:
            sections.extend(builder(document))
        except _RENDER_ERRORS as e:
            logger.warning(f"Skipping '{name}' sections: {e}")

    return _dedupe_ids(sections)


def _dedupe_ids(sections: list[Section]) -> list[Section]:
    """Suffix repeated ids with -2, -3, ... in construction order."""
    used: set[str] = set()
    unique: list[Section] = []
    for section in sections:
        candidate = section.id
        count = 1
        while candidate in used:
            count += 1
            candidate = f"{section.id}-{count}"
        if candidate != section.id:
            section = Section(id=candidate, content=section.content)
        used.add(candidate)
        unique.append(section)
    return unique


def _nutrition_daily(document: KnowledgeDocument) -> list[Section]:
    nutrition = document.nutritional_requirements
    if nutrition is None or not nutrition.daily_macros:
        return []
    items = SEPARATOR.join(
        f"{n.nutrient}: {n.amount} {n.unit} ({n.category})" for n in nutrition.daily_macros
    )
    return [
        Section(
            id="nutrition-daily",
            content=f"Daily nutritional requirements during pregnancy: {items}",
        )
    ]


def _nutrition_weight(document: KnowledgeDocument) -> list[Section]:
    nutrition = document.nutritional_requirements
    if nutrition is None or not nutrition.weight_gain_recommendations:
        return []
    items = SEPARATOR.join(
        f"{w.pre_pregnancy_bmi} (BMI {w.bmi_range}): {w.recommended_gain} {w.unit}"
        for w in nutrition.weight_gain_recommendations
    )
    return [Section(id="nutrition-weight", content=f"Weight gain recommendations: {items}")]


def _food_safety(document: KnowledgeDocument) -> list[Section]:
    food_safety = document.food_safety
    if food_safety is None:
        return []
    unsafe = SEPARATOR.join(food_safety.seafood_guidelines.unsafe)
    content = f"Foods to avoid during pregnancy: Unsafe seafood ({unsafe})"
    if food_safety.avoid_foods:
        content += SEPARATOR + SEPARATOR.join(f.item for f in food_safety.avoid_foods)
    return [Section(id="food-safety", content=content)]


def _morning_sickness(document: KnowledgeDocument) -> list[Section]:
    guidance = document.morning_sickness_management
    if guidance is None:
        return []
    clauses = []
    if guidance.what_to_eat:
        clauses.append(f"Eat {SEPARATOR.join(guidance.what_to_eat)}")
    if guidance.avoid_foods:
        clauses.append(f"Avoid {SEPARATOR.join(guidance.avoid_foods)}")
    if guidance.eating_tips:
        clauses.append(f"Tips: {SEPARATOR.join(guidance.eating_tips)}")
    if not clauses:
        return []
    content = "Morning sickness management: " + ". ".join(clauses)
    return [Section(id="morning-sickness", content=content)]


def _render(name: str, render: Callable[[], Section]) -> list[Section]:
    """Render one section, skipping it (and only it) if rendering raises."""
    try:
        return [render()]
    except _RENDER_ERRORS as e:
        logger.warning(f"Skipping '{name}' section: {e}")
        return []


def _timeline_section(key: str, entry: TimelineEntry) -> Section:
    symptoms = SEPARATOR.join(f"{s.symptom} - {s.status}" for s in entry.common_symptoms)
    content = f"{entry.title} ({entry.trimester} trimester): Common symptoms include {symptoms}."
    if entry.exercise is not None:
        content += f" Recommended exercise: {entry.exercise.name} - {entry.exercise.benefits}"
    return Section(id=f"timeline-{slugify(key)}", content=content)


def _timeline(document: KnowledgeDocument) -> list[Section]:
    sections: list[Section] = []
    for key, entry in document.pregnancy_timeline.items():
        sections.extend(_render(f"timeline {key}", partial(_timeline_section, key, entry)))
    return sections


def _symptom_section(symptom: Symptom, category: str) -> Section:
    return Section(
        id=f"symptom-{slugify(symptom.sign)}",
        content=(
            f"{symptom.sign} ({category}): {symptom.action}. "
            f"Urgency: {symptom.urgency}. Severity: {symptom.severity.value}"
        ),
    )


def _symptoms(document: KnowledgeDocument) -> list[Section]:
    troubleshooting = document.symptom_troubleshooting
    if troubleshooting is None:
        return []
    sections: list[Section] = []
    for category in troubleshooting.categories:
        for symptom in category.symptoms:
            sections.extend(
                _render(
                    f"symptom {symptom.sign}",
                    partial(_symptom_section, symptom, category.category),
                )
            )
    return sections


def _medication_section(med: Medication, condition: str) -> Section:
    content = (
        f"{med.drug} ({med.brand or 'Generic'}) for {condition}: "
        f"{med.safety_level}. {med.note or ''}"
    )
    return Section(id=f"medication-{slugify(med.drug)}", content=content.rstrip())


def _medications(document: KnowledgeDocument) -> list[Section]:
    catalog = document.medications
    if catalog is None:
        return []
    sections: list[Section] = []
    for group in catalog.by_condition:
        for med in group.medications:
            sections.extend(
                _render(
                    f"medication {med.drug}",
                    partial(_medication_section, med, group.condition),
                )
            )
    return sections
