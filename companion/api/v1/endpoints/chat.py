"""Pregnancy assistant chat endpoints."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from companion.api.deps import get_knowledge_service
from companion.knowledge.models import ChatMessage, Provenance, Role
from companion.knowledge.service import KnowledgeService

router = APIRouter()


class ChatRequest(BaseModel):
    """Request to chat with the assistant."""

    message: str = Field(..., min_length=1)


class MessageResponse(BaseModel):
    role: Role
    content: str
    provenance: Provenance | None
    created_at: datetime

    @classmethod
    def from_message(cls, message: ChatMessage) -> "MessageResponse":
        return cls(**message.model_dump())


class ChatResponse(BaseModel):
    """User message and assistant reply."""

    message: MessageResponse
    reply: MessageResponse


@router.post("", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    service: Annotated[KnowledgeService, Depends(get_knowledge_service)],
) -> ChatResponse:
    """Send a message to the assistant.

    Service failures come back as a reply with provenance ``error``, never
    as an HTTP error.
    """
    user_message, reply = await service.chat(request.message)
    return ChatResponse(
        message=MessageResponse.from_message(user_message),
        reply=MessageResponse.from_message(reply),
    )


@router.get("/messages", response_model=list[MessageResponse])
async def list_messages(
    service: Annotated[KnowledgeService, Depends(get_knowledge_service)],
) -> list[MessageResponse]:
    """Conversation so far, oldest first."""
    return [MessageResponse.from_message(m) for m in service.conversation]
