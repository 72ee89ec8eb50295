"""Data models for the pregnancy knowledge document, sections and chat turns."""

from datetime import datetime, timezone
from enum import Enum
from typing import Iterator

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# -------------------------------------------------------------------------
# Knowledge Document schema
# -------------------------------------------------------------------------


class SourceModel(BaseModel):
    """Base for read-only models parsed from the camelCase knowledge JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class Severity(str, Enum):
    """How urgently a symptom needs attention."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Nutrient(SourceModel):
    nutrient: str
    amount: str
    unit: str
    category: str


class WeightGainRecommendation(SourceModel):
    pre_pregnancy_bmi: str = Field(..., alias="prePregnancyBMI")
    bmi_range: str
    recommended_gain: str
    unit: str


class NutritionalRequirements(SourceModel):
    daily_macros: list[Nutrient] = Field(default_factory=list)
    weight_gain_recommendations: list[WeightGainRecommendation] = Field(default_factory=list)


class SeafoodGuidelines(SourceModel):
    unsafe: list[str] = Field(default_factory=list)
    safe: list[str] = Field(default_factory=list)


class AvoidFood(SourceModel):
    item: str
    includes: list[str] = Field(default_factory=list)
    reason: str | None = None


class FoodSafety(SourceModel):
    seafood_guidelines: SeafoodGuidelines
    avoid_foods: list[AvoidFood] = Field(default_factory=list)


class MorningSicknessManagement(SourceModel):
    what_to_eat: list[str] = Field(default_factory=list)
    avoid_foods: list[str] = Field(default_factory=list)
    eating_tips: list[str] = Field(default_factory=list)


class TimelineSymptom(SourceModel):
    symptom: str
    status: str


class Exercise(SourceModel):
    name: str
    benefits: str
    instructions: list[str] = Field(default_factory=list)


class TimelineEntry(SourceModel):
    """One week-range entry of the pregnancy timeline (e.g. ``weeks9to12``)."""

    trimester: str
    title: str
    common_symptoms: list[TimelineSymptom] = Field(default_factory=list)
    exercise: Exercise | None = None


class Symptom(SourceModel):
    sign: str
    urgency: str
    action: str
    severity: Severity


class SymptomCategory(SourceModel):
    category: str
    symptoms: list[Symptom] = Field(default_factory=list)


class SymptomTroubleshooting(SourceModel):
    categories: list[SymptomCategory] = Field(default_factory=list)


class Medication(SourceModel):
    drug: str
    brand: str | None = None
    safety: str = Field(..., description="Safety marker shown next to the drug (e.g. a colored dot)")
    safety_level: str
    note: str | None = None


class ConditionMedications(SourceModel):
    condition: str
    medications: list[Medication] = Field(default_factory=list)


class MedicationCatalog(SourceModel):
    by_condition: list[ConditionMedications] = Field(default_factory=list)


class KnowledgeDocument(SourceModel):
    """The whole pregnancy knowledge graph.

    Every domain is optional: the loader drops domains (and individual list
    items) that fail validation, so a partially malformed source still yields
    a usable document.
    """

    nutritional_requirements: NutritionalRequirements | None = None
    food_safety: FoodSafety | None = None
    morning_sickness_management: MorningSicknessManagement | None = None
    pregnancy_timeline: dict[str, TimelineEntry] = Field(default_factory=dict)
    symptom_troubleshooting: SymptomTroubleshooting | None = None
    medications: MedicationCatalog | None = None

    @property
    def is_empty(self) -> bool:
        return not any(
            (
                self.nutritional_requirements,
                self.food_safety,
                self.morning_sickness_management,
                self.pregnancy_timeline,
                self.symptom_troubleshooting,
                self.medications,
            )
        )


# -------------------------------------------------------------------------
# Lookup results
# -------------------------------------------------------------------------


class MedicationMatch(Medication):
    """A medication together with the condition it is listed under."""

    condition: str


class SymptomMatch(Symptom):
    """A symptom together with its troubleshooting category."""

    category: str


# -------------------------------------------------------------------------
# Sections and retrieval
# -------------------------------------------------------------------------


class Section(BaseModel):
    """A self-contained, retrievable text slice of the knowledge document."""

    id: str = Field(..., description="Stable key, e.g. 'symptom-heavy-bleeding'")
    content: str = Field(..., description="One-paragraph natural-language rendering")
    embedding: list[float] | None = Field(
        default=None,
        description="Embedding vector, set at most once by the index build",
    )

    def attach_embedding(self, vector: list[float]) -> None:
        """Store the embedding vector.

        Raises:
            ValueError: If the section already carries an embedding.
        """
        if self.embedding is not None:
            raise ValueError(f"Section {self.id!r} already has an embedding")
        self.embedding = list(vector)


class RetrievalResult(BaseModel):
    """A retrieved section and its cosine similarity (None on keyword matches)."""

    section: Section
    score: float | None = Field(default=None, ge=-1.0, le=1.0)


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    DEGRADED = "degraded"
    FAILED = "failed"


class RetrievalMode(str, Enum):
    VECTOR = "vector"
    KEYWORD = "keyword"


class IndexBuildReport(BaseModel):
    """Result of one ``EmbeddingIndex.build()`` call."""

    status: OutcomeStatus
    embedded: int = 0
    failed: int = 0
    reason: str | None = None


class Retrieval(BaseModel):
    """Result of one retriever search, including which path produced it."""

    status: OutcomeStatus
    mode: RetrievalMode
    results: list[RetrievalResult] = Field(default_factory=list)
    reason: str | None = None

    @property
    def sections(self) -> list[Section]:
        return [result.section for result in self.results]


class Generation(BaseModel):
    """Result of one generative-service call."""

    status: OutcomeStatus
    text: str | None = None
    reason: str | None = None


# -------------------------------------------------------------------------
# Chat
# -------------------------------------------------------------------------


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class Provenance(str, Enum):
    """Where an assistant reply's content came from."""

    GROUNDED = "grounded"
    GENERAL = "general"
    ERROR = "error"


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str
    provenance: Provenance | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Conversation:
    """Append-only, in-memory list of chat messages."""

    def __init__(self) -> None:
        self._messages: list[ChatMessage] = []

    def append(self, message: ChatMessage) -> None:
        self._messages.append(message)

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(tuple(self._messages))
