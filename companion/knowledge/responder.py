"""Grounded responder: answers chat questions using retrieved knowledge sections."""

import logging
import time
from typing import TYPE_CHECKING

from companion.knowledge.models import (
    ChatMessage,
    Conversation,
    Generation,
    OutcomeStatus,
    Provenance,
    Role,
    Section,
)
from companion.knowledge.retriever import KnowledgeRetriever, format_context
from companion.observability import get_metrics_backend

if TYPE_CHECKING:
    from openai import AsyncOpenAI

logger = logging.getLogger(__name__)

CONTEXT_SECTIONS = 3
PROVENANCE_PREFIX_CHARS = 30

NOT_CONFIGURED_MESSAGE = (
    "OpenAI API key not configured. Please set OPENAI_API_KEY in your environment variables."
)
FAILURE_MESSAGE = "Sorry, I'm having trouble responding right now. Please try again later."
EMPTY_REPLY_MESSAGE = "I couldn't generate a response."

SYSTEM_PROMPT = """You are a helpful pregnancy care assistant. You have access to a medical knowledge base about pregnancy.
When answering questions, clearly indicate whether your response is based on the provided knowledge base or general knowledge.
Always recommend consulting healthcare providers for medical decisions."""


def build_system_prompt(sections: list[Section]) -> str:
    """Persona and instructions, plus the knowledge-base context when available."""
    context = format_context(sections)
    if not context:
        return SYSTEM_PROMPT
    return f"{SYSTEM_PROMPT}\n\nRelevant information from knowledge base:\n{context}"


def classify_provenance(reply: str, sections: list[Section]) -> Provenance:
    """Label a reply as grounded or general.

    This is a heuristic, not a guarantee: the reply counts as grounded when it
    contains the first 30 characters (case-insensitive) of at least one
    retrieved section. A reply can use the context without quoting it, and
    can match a prefix by coincidence.
    """
    reply_lower = reply.lower()
    for section in sections:
        prefix = section.content[:PROVENANCE_PREFIX_CHARS].lower()
        if prefix and prefix in reply_lower:
            return Provenance.GROUNDED
    return Provenance.GENERAL


class GroundedResponder:
    """Composes retrieval and the generative service into one chat turn."""

    def __init__(
        self,
        retriever: KnowledgeRetriever,
        client: "AsyncOpenAI | None" = None,
        model: str = "gpt-3.5-turbo",
        temperature: float = 0.7,
        max_tokens: int = 500,
        top_k: int = CONTEXT_SECTIONS,
    ) -> None:
        self.retriever = retriever
        self.top_k = top_k
        self._client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def respond(self, query: str, conversation: Conversation) -> ChatMessage:
        """Answer ``query`` and append exactly one assistant message.

        Args:
            query: The latest user question. Earlier turns are not sent.
            conversation: Conversation the reply is appended to.

        Returns:
            The appended assistant message.
        """
        sections = await self.retriever.retrieve(query, self.top_k)

        if self._client is None:
            message = ChatMessage(
                role=Role.ASSISTANT,
                content=NOT_CONFIGURED_MESSAGE,
                provenance=Provenance.ERROR,
            )
        else:
            generation = await self._generate(query, sections)
            if generation.status is OutcomeStatus.SUCCESS:
                reply = generation.text or EMPTY_REPLY_MESSAGE
                message = ChatMessage(
                    role=Role.ASSISTANT,
                    content=reply,
                    provenance=classify_provenance(reply, sections),
                )
            else:
                message = ChatMessage(
                    role=Role.ASSISTANT,
                    content=FAILURE_MESSAGE,
                    provenance=Provenance.ERROR,
                )

        conversation.append(message)
        return message

    async def _generate(self, query: str, sections: list[Section]) -> Generation:
        """Call the chat completion API once with the system prompt and the query."""
        metrics = get_metrics_backend()
        messages = [
            {"role": "system", "content": build_system_prompt(sections)},
            {"role": "user", "content": query},
        ]

        start_time = time.perf_counter()
        status_code = 500
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
            status_code = 200
            text = response.choices[0].message.content
        except Exception as e:
            logger.error(f"Chat completion failed: {e}")
            return Generation(status=OutcomeStatus.FAILED, reason=str(e))
        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000
            metrics.observe_external_api("openai", "chat.completions", status_code, duration_ms)
            logger.info(
                "OpenAI API chat.completions status=%s duration_ms=%.2f",
                status_code,
                duration_ms,
            )

        return Generation(status=OutcomeStatus.SUCCESS, text=text)
