"""Tests for the grounded responder and the service chat flow."""

from unittest.mock import AsyncMock

import pytest

from companion.knowledge.index import EmbeddingIndex
from companion.knowledge.models import Conversation, Provenance, Role, Section
from companion.knowledge.responder import (
    EMPTY_REPLY_MESSAGE,
    FAILURE_MESSAGE,
    NOT_CONFIGURED_MESSAGE,
    SYSTEM_PROMPT,
    GroundedResponder,
    build_system_prompt,
    classify_provenance,
)
from companion.knowledge.retriever import KnowledgeRetriever
from companion.knowledge.service import KnowledgeService
from companion.observability import get_metrics_backend
from tests.conftest import chat_response, make_openai_client

pytestmark = pytest.mark.rag

IBUPROFEN = Section(
    id="medication-ibuprofen",
    content="Ibuprofen (Advil) for Pain: Avoid. Especially after 20 weeks",
)
IRON = Section(
    id="nutrition-daily",
    content="Daily nutritional requirements during pregnancy: Iron: 27 mg (Mineral)",
)


def make_responder(client=None) -> GroundedResponder:
    retriever = KnowledgeRetriever(EmbeddingIndex([IBUPROFEN, IRON]))
    return GroundedResponder(retriever, client, model="test-chat")


class TestRespond:
    """Tests for GroundedResponder.respond."""

    async def test_not_configured_makes_no_external_calls(self):
        metrics = get_metrics_backend()
        before = metrics.external_call_count("openai")
        conversation = Conversation()

        message = await make_responder().respond("is ibuprofen safe?", conversation)

        assert message.provenance is Provenance.ERROR
        assert message.role is Role.ASSISTANT
        assert message.content == NOT_CONFIGURED_MESSAGE
        assert list(conversation) == [message]
        assert metrics.external_call_count("openai") == before

    async def test_generation_failure_is_error_message(self):
        client = make_openai_client()
        client.chat.completions.create = AsyncMock(side_effect=ConnectionError("reset"))
        conversation = Conversation()

        message = await make_responder(client).respond("is ibuprofen safe?", conversation)

        assert message.provenance is Provenance.ERROR
        assert message.content == FAILURE_MESSAGE
        assert len(conversation) == 1

    async def test_reply_quoting_section_is_grounded(self):
        client = make_openai_client(
            reply="Per the knowledge base, IBUPROFEN (ADVIL) FOR PAIN: avoid it."
        )

        message = await make_responder(client).respond("ibuprofen", Conversation())

        assert message.provenance is Provenance.GROUNDED

    async def test_reply_without_section_text_is_general(self):
        client = make_openai_client(reply="Ask your provider before taking anything.")

        message = await make_responder(client).respond("ibuprofen", Conversation())

        assert message.provenance is Provenance.GENERAL
        assert message.content == "Ask your provider before taking anything."

    async def test_empty_reply_uses_fallback_text(self):
        client = make_openai_client(reply=None)

        message = await make_responder(client).respond("ibuprofen", Conversation())

        assert message.content == EMPTY_REPLY_MESSAGE
        assert message.provenance is Provenance.GENERAL

    async def test_sends_system_prompt_and_query_only(self):
        """Test earlier turns are not sent and the context is in the system prompt."""
        client = make_openai_client()
        client.chat.completions.create = AsyncMock(return_value=chat_response("ok"))
        responder = make_responder(client)
        conversation = Conversation()

        await responder.respond("first question", conversation)
        await responder.respond("ibuprofen", conversation)

        kwargs = client.chat.completions.create.await_args.kwargs
        messages = kwargs["messages"]
        assert kwargs["model"] == "test-chat"
        assert kwargs["temperature"] == 0.7
        assert kwargs["max_tokens"] == 500
        assert len(messages) == 2
        assert messages[0]["role"] == "system"
        assert messages[0]["content"].startswith(SYSTEM_PROMPT)
        assert IBUPROFEN.content in messages[0]["content"]
        assert IRON.content not in messages[0]["content"]
        assert messages[1] == {"role": "user", "content": "ibuprofen"}

    async def test_records_chat_metrics(self):
        metrics = get_metrics_backend()
        before = metrics.external_call_count("openai", "chat.completions")

        await make_responder(make_openai_client()).respond("iron", Conversation())

        assert metrics.external_call_count("openai", "chat.completions") == before + 1


class TestProvenance:
    def test_grounded_is_case_insensitive(self):
        reply = "daily nutritional requirements during pregnancy include iron"

        assert classify_provenance(reply, [IBUPROFEN, IRON]) is Provenance.GROUNDED

    def test_general_without_sections(self):
        assert classify_provenance("Anything", []) is Provenance.GENERAL

    def test_prefix_must_be_contiguous(self):
        assert classify_provenance("Ibuprofen is for pain", [IBUPROFEN]) is Provenance.GENERAL


class TestSystemPrompt:
    def test_without_sections(self):
        assert build_system_prompt([]) == SYSTEM_PROMPT

    def test_with_sections(self):
        prompt = build_system_prompt([IRON])

        assert "Relevant information from knowledge base:" in prompt
        assert "Based on our pregnancy knowledge base:\n" + IRON.content in prompt


class TestServiceChat:
    """Tests for KnowledgeService.chat."""

    async def test_chat_appends_user_and_assistant(self, document):
        service = KnowledgeService(document)

        user_message, reply = await service.chat("is ibuprofen safe?")

        assert user_message.role is Role.USER
        assert user_message.provenance is None
        assert reply.provenance is Provenance.ERROR
        assert list(service.conversation) == [user_message, reply]

    async def test_chat_uses_vector_search_once_index_ready(self, document):
        client = make_openai_client(
            embed=lambda text: [1.0, 0.0] if "Ibuprofen" in text or text == "advil?" else [0.0, 1.0],
            reply="Ibuprofen (Advil) for Pain: Avoid. Check with your doctor.",
        )
        service = KnowledgeService(document, client)

        report = await service.wait_for_index()
        _, reply = await service.chat("advil?")

        assert report.status.value == "success"
        assert service.index.is_ready
        assert reply.provenance is Provenance.GROUNDED
        system_prompt = client.chat.completions.create.await_args.kwargs["messages"][0]["content"]
        assert "Ibuprofen (Advil) for Pain" in system_prompt
