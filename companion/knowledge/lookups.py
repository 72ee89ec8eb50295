"""Direct lookups over the knowledge document for the non-chat views.

These are pure projections: no ranking, no external calls, and an empty
result simply means nothing matched.
"""

import re

from companion.knowledge.models import (
    ConditionMedications,
    FoodSafety,
    KnowledgeDocument,
    MedicationMatch,
    MorningSicknessManagement,
    NutritionalRequirements,
    Severity,
    SymptomMatch,
    TimelineEntry,
)

_WEEK_RANGE_RE = re.compile(r"^weeks?[-_]?(\d+)(?:[-_]?(?:to|-)[-_]?(\d+))?$", re.IGNORECASE)


def parse_week_range(key: str) -> tuple[int, int] | None:
    """Parse a timeline key such as ``weeks9to12`` into ``(9, 12)``.

    A single-week key (``week20``) yields ``(20, 20)``. Unrecognized keys
    yield None.
    """
    match = _WEEK_RANGE_RE.match(key.strip())
    if match is None:
        return None
    start = int(match.group(1))
    end = int(match.group(2)) if match.group(2) else start
    return (start, end) if start <= end else (end, start)


class KnowledgeLookups:
    """Exact-category accessors used by the medication, symptom, timeline and nutrition views."""

    def __init__(self, document: KnowledgeDocument) -> None:
        self.document = document

    def check_medication_safety(self, name: str) -> list[MedicationMatch]:
        """Medications whose drug or brand name contains ``name`` (case-insensitive)."""
        needle = name.strip().lower()
        if not needle or self.document.medications is None:
            return []

        matches: list[MedicationMatch] = []
        for group in self.document.medications.by_condition:
            for med in group.medications:
                if needle in med.drug.lower() or (med.brand and needle in med.brand.lower()):
                    matches.append(MedicationMatch(**med.model_dump(), condition=group.condition))
        return matches

    def list_medications_by_condition(self) -> list[ConditionMedications]:
        if self.document.medications is None:
            return []
        return list(self.document.medications.by_condition)

    def get_symptom_info(self, sign: str) -> list[SymptomMatch]:
        """Symptoms whose sign contains ``sign`` (case-insensitive)."""
        needle = sign.strip().lower()
        if not needle:
            return []
        return [s for s in self._all_symptoms() if needle in s.sign.lower()]

    def get_emergency_symptoms(self) -> list[SymptomMatch]:
        """All high-severity symptoms, in category then symptom order."""
        return [s for s in self._all_symptoms() if s.severity is Severity.HIGH]

    def get_week_info(self, week: int) -> TimelineEntry | None:
        """Timeline entry whose week range contains ``week``."""
        for key, entry in self.document.pregnancy_timeline.items():
            week_range = parse_week_range(key)
            if week_range and week_range[0] <= week <= week_range[1]:
                return entry
        return None

    def get_nutritional_requirements(self) -> NutritionalRequirements:
        return self.document.nutritional_requirements or NutritionalRequirements()

    def get_food_safety(self) -> FoodSafety | None:
        return self.document.food_safety

    def get_morning_sickness_guidance(self) -> MorningSicknessManagement | None:
        return self.document.morning_sickness_management

    def _all_symptoms(self) -> list[SymptomMatch]:
        troubleshooting = self.document.symptom_troubleshooting
        if troubleshooting is None:
            return []
        return [
            SymptomMatch(**symptom.model_dump(), category=category.category)
            for category in troubleshooting.categories
            for symptom in category.symptoms
        ]
