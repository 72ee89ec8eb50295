"""Knowledge base inspection and retrieval endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from companion.api.deps import get_knowledge_service
from companion.knowledge.models import OutcomeStatus, RetrievalMode
from companion.knowledge.service import KnowledgeService

router = APIRouter()


class KnowledgeStatusResponse(BaseModel):
    """Knowledge base and index state."""

    document_loaded: bool
    section_count: int
    embeddings_configured: bool
    index_ready: bool


class SectionResponse(BaseModel):
    id: str
    content: str
    has_embedding: bool


class SearchHit(BaseModel):
    id: str
    content: str
    score: float | None


class SearchResponse(BaseModel):
    """Retriever output for a query."""

    query: str
    mode: RetrievalMode
    status: OutcomeStatus
    reason: str | None
    results: list[SearchHit]


@router.get("/status", response_model=KnowledgeStatusResponse)
async def get_status(
    service: Annotated[KnowledgeService, Depends(get_knowledge_service)],
) -> KnowledgeStatusResponse:
    return KnowledgeStatusResponse(
        document_loaded=service.is_loaded,
        section_count=len(service.sections),
        embeddings_configured=service.index.is_configured,
        index_ready=service.index.is_ready,
    )


@router.get("/sections", response_model=list[SectionResponse])
async def list_sections(
    service: Annotated[KnowledgeService, Depends(get_knowledge_service)],
) -> list[SectionResponse]:
    """List all sections in construction order."""
    return [
        SectionResponse(id=s.id, content=s.content, has_embedding=s.embedding is not None)
        for s in service.sections
    ]


@router.get("/search", response_model=SearchResponse)
async def search(
    service: Annotated[KnowledgeService, Depends(get_knowledge_service)],
    q: str = Query(..., min_length=1, description="Free-text query"),
    top_k: int = Query(3, ge=1, le=20),
) -> SearchResponse:
    """Run the retriever and report which path answered.

    Args:
        service: Knowledge service.
        q: Query text.
        top_k: Maximum number of sections.

    Returns:
        Matching sections ordered by relevance.
    """
    retrieval = await service.retriever.search(q, top_k)
    return SearchResponse(
        query=q,
        mode=retrieval.mode,
        status=retrieval.status,
        reason=retrieval.reason,
        results=[
            SearchHit(id=r.section.id, content=r.section.content, score=r.score)
            for r in retrieval.results
        ],
    )
