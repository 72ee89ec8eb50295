"""Knowledge base module for retrieval-augmented pregnancy guidance.

This module loads the pregnancy knowledge graph, flattens it into sections,
embeds and searches them, and grounds chat replies in the results.
"""

from companion.knowledge.index import EmbeddingIndex
from companion.knowledge.lookups import KnowledgeLookups
from companion.knowledge.models import (
    ChatMessage,
    Conversation,
    KnowledgeDocument,
    Provenance,
    RetrievalResult,
    Section,
)
from companion.knowledge.responder import GroundedResponder, classify_provenance
from companion.knowledge.retriever import KnowledgeRetriever
from companion.knowledge.sections import build_sections
from companion.knowledge.service import KnowledgeService, create_knowledge_service

__all__ = [
    "ChatMessage",
    "Conversation",
    "EmbeddingIndex",
    "GroundedResponder",
    "KnowledgeDocument",
    "KnowledgeLookups",
    "KnowledgeRetriever",
    "KnowledgeService",
    "Provenance",
    "RetrievalResult",
    "Section",
    "build_sections",
    "classify_provenance",
    "create_knowledge_service",
]
