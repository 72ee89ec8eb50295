"""Knowledge retriever for RAG.

Uses vector similarity over the embedding index when it is ready and falls
back to case-insensitive substring matching otherwise.
"""

import logging
from typing import TYPE_CHECKING

from companion.knowledge.embeddings import cosine_similarity, generate_embedding
from companion.knowledge.index import EmbeddingIndex
from companion.knowledge.models import (
    OutcomeStatus,
    Retrieval,
    RetrievalMode,
    RetrievalResult,
    Section,
)

if TYPE_CHECKING:
    from openai import AsyncOpenAI

logger = logging.getLogger(__name__)

DEFAULT_SIMILARITY_THRESHOLD = 0.70


class KnowledgeRetriever:
    """Finds the sections most relevant to a free-text query."""

    def __init__(
        self,
        index: EmbeddingIndex,
        client: "AsyncOpenAI | None" = None,
        embedding_model: str | None = None,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    ) -> None:
        self.index = index
        self._client = client
        self._embedding_model = embedding_model
        self.similarity_threshold = similarity_threshold

    @property
    def sections(self) -> list[Section]:
        return self.index.sections

    async def retrieve(self, query: str, top_k: int = 3) -> list[Section]:
        """Return up to ``top_k`` sections ordered by decreasing relevance."""
        retrieval = await self.search(query, top_k)
        return retrieval.sections

    async def search(self, query: str, top_k: int = 3) -> Retrieval:
        """Search for relevant sections.

        Args:
            query: Search query text.
            top_k: Maximum number of results to return.

        Returns:
            Retrieval outcome. ``mode`` tells which path produced the results;
            ``status`` is ``degraded`` whenever the keyword fallback was used.
        """
        if top_k <= 0:
            return Retrieval(status=OutcomeStatus.SUCCESS, mode=RetrievalMode.KEYWORD)

        if self._client is None or not self.index.is_ready:
            return self._keyword_search(query, top_k, reason="embedding index not ready")

        try:
            query_embedding = await generate_embedding(
                self._client, query, self._embedding_model
            )
            hits = self.index.search(query_embedding, top_k)
        except Exception as e:
            logger.warning(f"Vector search failed, falling back to keyword search: {e}")
            return self._keyword_search(query, top_k, reason=f"query embedding failed: {e}")

        # FAISS scores are float32; the threshold is applied to the float64 cosine
        scored = sorted(
            (
                (section, cosine_similarity(query_embedding, section.embedding))
                for section, _ in hits
            ),
            key=lambda hit: hit[1],
            reverse=True,
        )
        results = [
            RetrievalResult(section=section, score=max(-1.0, min(1.0, score)))
            for section, score in scored
            if score > self.similarity_threshold
        ]
        logger.debug(f"Vector search returned {len(results)} sections for query: {query[:50]}...")
        return Retrieval(
            status=OutcomeStatus.SUCCESS,
            mode=RetrievalMode.VECTOR,
            results=results[:top_k],
        )

    def _keyword_search(self, query: str, top_k: int, reason: str) -> Retrieval:
        """Substring match in section order; first matches win, no ranking."""
        query_lower = query.lower()
        matches = [
            RetrievalResult(section=section)
            for section in self.sections
            if query_lower in section.content.lower()
        ]
        return Retrieval(
            status=OutcomeStatus.DEGRADED,
            mode=RetrievalMode.KEYWORD,
            results=matches[:top_k],
            reason=reason,
        )


def format_context(sections: list[Section]) -> str:
    """Format retrieved sections as the knowledge-base context block.

    Section content is included verbatim, separated by blank lines.

    Returns:
        Context string, or an empty string when nothing was retrieved.
    """
    if not sections:
        return ""
    body = "\n\n".join(section.content for section in sections)
    return f"Based on our pregnancy knowledge base:\n{body}"
