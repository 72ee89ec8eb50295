"""Knowledge service: owns the document, sections, index and responder.

Constructed once by the application's lifespan and handed to request
handlers through ``app.state``.
"""

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from companion.core.config import Settings
from companion.knowledge.index import EmbeddingIndex
from companion.knowledge.loader import load_knowledge_document
from companion.knowledge.lookups import KnowledgeLookups
from companion.knowledge.models import (
    ChatMessage,
    Conversation,
    IndexBuildReport,
    KnowledgeDocument,
    Role,
)
from companion.knowledge.responder import GroundedResponder
from companion.knowledge.retriever import KnowledgeRetriever
from companion.knowledge.sections import build_sections

if TYPE_CHECKING:
    from openai import AsyncOpenAI

logger = logging.getLogger(__name__)


class KnowledgeService:
    """Everything derived from one knowledge document, wired together."""

    def __init__(
        self,
        document: KnowledgeDocument,
        client: "AsyncOpenAI | None" = None,
        *,
        embedding_model: str | None = None,
        chat_model: str = "gpt-3.5-turbo",
        temperature: float = 0.7,
        max_tokens: int = 500,
        top_k: int = 3,
        similarity_threshold: float = 0.70,
    ) -> None:
        self.document = document
        self.sections = build_sections(document)
        self.lookups = KnowledgeLookups(document)
        self.index = EmbeddingIndex(self.sections, client, embedding_model)
        self.retriever = KnowledgeRetriever(
            self.index,
            client,
            embedding_model=embedding_model,
            similarity_threshold=similarity_threshold,
        )
        self.responder = GroundedResponder(
            self.retriever,
            client,
            model=chat_model,
            temperature=temperature,
            max_tokens=max_tokens,
            top_k=top_k,
        )
        self.conversation = Conversation()
        self._index_task: asyncio.Task[IndexBuildReport] | None = None

    @classmethod
    def from_settings(
        cls,
        document: KnowledgeDocument,
        settings: Settings,
        client: "AsyncOpenAI | None" = None,
    ) -> "KnowledgeService":
        return cls(
            document,
            client,
            embedding_model=settings.openai_embedding_model,
            chat_model=settings.openai_model,
            temperature=settings.chat_temperature,
            max_tokens=settings.chat_max_tokens,
            top_k=settings.retrieval_top_k,
            similarity_threshold=settings.similarity_threshold,
        )

    @property
    def is_loaded(self) -> bool:
        return not self.document.is_empty

    def start_index_build(self) -> "asyncio.Task[IndexBuildReport]":
        """Schedule the index build without waiting for it.

        Requests served meanwhile observe an index that is not ready and use
        keyword search.
        """
        if self._index_task is None:
            self._index_task = asyncio.create_task(self.index.build())
        return self._index_task

    async def wait_for_index(self) -> IndexBuildReport:
        return await self.start_index_build()

    async def chat(self, text: str) -> tuple[ChatMessage, ChatMessage]:
        """Record the user's message and produce the assistant's reply."""
        user_message = ChatMessage(role=Role.USER, content=text)
        self.conversation.append(user_message)
        reply = await self.responder.respond(text, self.conversation)
        return user_message, reply


def create_openai_client(settings: Settings) -> "AsyncOpenAI | None":
    """Create the OpenAI client, or None when no API key is configured."""
    if not settings.openai_api_key:
        return None

    from openai import AsyncOpenAI

    return AsyncOpenAI(api_key=settings.openai_api_key)


async def create_knowledge_service(
    settings: Settings,
    source: str | Path | None = None,
    client: "AsyncOpenAI | None" = None,
) -> KnowledgeService:
    """Load the knowledge document and build the service around it.

    Should be called during application startup.

    Args:
        settings: Application settings.
        source: Document path or URL (defaults to settings).
        client: OpenAI client (defaults to one built from settings).
    """
    document = await load_knowledge_document(source or settings.knowledge_document_source)
    if client is None:
        client = create_openai_client(settings)

    service = KnowledgeService.from_settings(document, settings, client)
    logger.info(
        f"Knowledge service initialized: {len(service.sections)} sections, "
        f"embeddings {'enabled' if client else 'disabled'}"
    )
    return service
