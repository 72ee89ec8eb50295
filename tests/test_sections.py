"""Tests for flattening the knowledge document into sections."""

import pytest

from companion.knowledge import sections as sections_module
from companion.knowledge.loader import parse_knowledge_document
from companion.knowledge.models import (
    ConditionMedications,
    KnowledgeDocument,
    Medication,
    MedicationCatalog,
    MorningSicknessManagement,
    Symptom,
    SymptomCategory,
    SymptomTroubleshooting,
)
from companion.knowledge.sections import build_sections, slugify


class TestBuildSections:
    """Tests for build_sections."""

    def test_section_ids_in_construction_order(self, document: KnowledgeDocument):
        """Test sections come out in domain order with stable ids."""
        ids = [s.id for s in build_sections(document)]

        assert ids == [
            "nutrition-daily",
            "nutrition-weight",
            "food-safety",
            "morning-sickness",
            "timeline-weeks9to12",
            "timeline-weeks13to16",
            "symptom-light-spotting",
            "symptom-heavy-bleeding",
            "symptom-sudden-swelling",
            "symptom-ankle-swelling",
            "medication-acetaminophen",
            "medication-ibuprofen",
            "medication-loratadine",
        ]

    def test_build_is_deterministic(self, knowledge_payload):
        """Test two builds from the same input are identical."""
        first = build_sections(parse_knowledge_document(knowledge_payload))
        second = build_sections(parse_knowledge_document(knowledge_payload))

        assert [s.id for s in first] == [s.id for s in second]
        assert [s.content for s in first] == [s.content for s in second]

    def test_nutrition_content(self, document: KnowledgeDocument):
        """Test nutrition sections enumerate every entry."""
        by_id = {s.id: s for s in build_sections(document)}

        assert by_id["nutrition-daily"].content == (
            "Daily nutritional requirements during pregnancy: "
            "Protein: 71 g (Macronutrient), Iron: 27 mg (Mineral)"
        )
        assert by_id["nutrition-weight"].content == (
            "Weight gain recommendations: Normal weight (BMI 18.5-24.9): 25-35 lbs"
        )

    def test_food_safety_and_morning_sickness_content(self, document: KnowledgeDocument):
        by_id = {s.id: s for s in build_sections(document)}

        assert by_id["food-safety"].content == (
            "Foods to avoid during pregnancy: Unsafe seafood (Shark, Swordfish), "
            "Raw eggs, Unpasteurized cheese"
        )
        assert by_id["morning-sickness"].content == (
            "Morning sickness management: Eat Crackers, Ginger tea. "
            "Avoid Greasy food. Tips: Eat small meals"
        )

    def test_timeline_content_with_and_without_exercise(self, document: KnowledgeDocument):
        """Test the exercise clause only appears when an exercise is given."""
        by_id = {s.id: s for s in build_sections(document)}

        assert by_id["timeline-weeks9to12"].content == (
            "Weeks 9-12 (First trimester): Common symptoms include "
            "Nausea - peaking, Fatigue - common. "
            "Recommended exercise: Walking - Boosts energy"
        )
        assert by_id["timeline-weeks13to16"].content == (
            "Weeks 13-16 (Second trimester): Common symptoms include Nausea - improving."
        )

    def test_symptom_content(self, document: KnowledgeDocument):
        by_id = {s.id: s for s in build_sections(document)}

        assert by_id["symptom-heavy-bleeding"].content == (
            "Heavy bleeding (Bleeding): Call 911. Urgency: Emergency. Severity: high"
        )

    def test_medication_content(self, document: KnowledgeDocument):
        """Test missing brand renders as Generic and missing note leaves no trailing space."""
        by_id = {s.id: s for s in build_sections(document)}

        assert by_id["medication-acetaminophen"].content == (
            "Acetaminophen (Tylenol) for Pain: Generally safe."
        )
        assert by_id["medication-ibuprofen"].content == (
            "Ibuprofen (Advil) for Pain: Avoid. Especially after 20 weeks"
        )
        assert by_id["medication-loratadine"].content == (
            "Loratadine (Generic) for Allergies: Generally safe."
        )

    def test_sections_have_no_embeddings(self, document: KnowledgeDocument):
        assert all(s.embedding is None for s in build_sections(document))

    def test_empty_document_builds_nothing(self):
        assert build_sections(KnowledgeDocument()) == []

    def test_missing_domain_skips_only_that_slice(self, knowledge_payload):
        """Test a missing domain does not stop the other sections."""
        del knowledge_payload["pregnancyKnowledgeGraph"]["nutritionalRequirements"]
        del knowledge_payload["pregnancyKnowledgeGraph"]["foodSafety"]["seafoodGuidelines"]

        ids = [s.id for s in build_sections(parse_knowledge_document(knowledge_payload))]

        assert "nutrition-daily" not in ids
        assert "food-safety" not in ids
        assert ids[0] == "morning-sickness"
        assert "medication-ibuprofen" in ids

    def test_render_error_skips_only_that_slice(self, document, monkeypatch):
        """Test a slice that raises while rendering is skipped."""

        def broken(_document):
            raise KeyError("unit")

        monkeypatch.setattr(sections_module, "_nutrition_weight", broken)

        ids = [s.id for s in build_sections(document)]

        assert "nutrition-weight" not in ids
        assert "nutrition-daily" in ids
        assert "food-safety" in ids

    def test_bad_medication_skips_only_that_section(self):
        """Test one unrenderable medication leaves its siblings in place."""
        good = Medication(
            drug="Acetaminophen", brand="Tylenol", safety="x", safety_level="Generally safe"
        )
        bad = Medication.model_construct(
            drug=None, brand=None, safety="x", safety_level="Avoid", note=None
        )
        document = KnowledgeDocument(
            medications=MedicationCatalog(
                by_condition=[ConditionMedications(condition="Pain", medications=[bad, good])]
            )
        )

        ids = [s.id for s in build_sections(document)]

        assert ids == ["medication-acetaminophen"]

    def test_bad_symptom_skips_only_that_section(self, document):
        bad = Symptom.model_construct(sign="Cramping", urgency="Soon", action="Rest", severity=None)
        good = Symptom(sign="Headache", urgency="Routine", action="Hydrate", severity="low")
        document = document.model_copy(
            update={
                "symptom_troubleshooting": SymptomTroubleshooting(
                    categories=[SymptomCategory(category="Pain", symptoms=[good, bad])]
                )
            }
        )

        ids = [s.id for s in build_sections(document)]

        assert "symptom-headache" in ids
        assert "symptom-cramping" not in ids
        assert "medication-ibuprofen" in ids

    def test_morning_sickness_skips_empty_clauses(self):
        document = KnowledgeDocument(
            morning_sickness_management=MorningSicknessManagement(eating_tips=["Eat small meals"])
        )

        sections = build_sections(document)

        assert [s.content for s in sections] == [
            "Morning sickness management: Tips: Eat small meals"
        ]

    def test_empty_morning_sickness_builds_nothing(self):
        document = KnowledgeDocument(morning_sickness_management=MorningSicknessManagement())

        assert build_sections(document) == []

    def test_duplicate_ids_get_suffix(self, knowledge_payload):
        """Test repeated symptom names keep unique, deterministic ids."""
        categories = knowledge_payload["pregnancyKnowledgeGraph"]["symptomTroubleshooting"]["categories"]
        categories[1]["symptoms"].append(
            {"sign": "Heavy  Bleeding", "urgency": "Now", "action": "Go", "severity": "high"}
        )

        ids = [s.id for s in build_sections(parse_knowledge_document(knowledge_payload))]

        assert ids.count("symptom-heavy-bleeding") == 1
        assert "symptom-heavy-bleeding-2" in ids
        assert len(ids) == len(set(ids))


class TestSlugify:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("Heavy bleeding", "heavy-bleeding"),
            ("Severe  headache\twith vision", "severe-headache-with-vision"),
            ("  Acetaminophen ", "acetaminophen"),
        ],
    )
    def test_slugify(self, value, expected):
        assert slugify(value) == expected
