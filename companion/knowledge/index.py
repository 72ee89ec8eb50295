"""In-memory embedding index over knowledge sections.

Embeds every section once through the external embedding service and keeps
the normalized vectors in a FAISS inner-product index, so that inner product
equals cosine similarity at query time.
"""

import asyncio
import logging
from typing import TYPE_CHECKING

import numpy as np

from companion.knowledge.embeddings import generate_embedding
from companion.knowledge.models import IndexBuildReport, OutcomeStatus, Section

if TYPE_CHECKING:
    import faiss
    from numpy.typing import NDArray
    from openai import AsyncOpenAI

logger = logging.getLogger(__name__)


class EmbeddingIndex:
    """Embeddings for a fixed list of sections plus a readiness flag.

    The index becomes ready only when every section was embedded
    successfully. Any failure leaves it permanently not ready for the
    lifetime of the process; there is no retry.
    """

    def __init__(
        self,
        sections: list[Section],
        client: "AsyncOpenAI | None" = None,
        embedding_model: str | None = None,
    ) -> None:
        self.sections = sections
        self._client = client
        self._embedding_model = embedding_model
        self._index: "faiss.IndexFlatIP | None" = None
        self._ready = False
        self._building = False
        self._failed = False

    @property
    def is_configured(self) -> bool:
        """Whether an embedding backend is available at all."""
        return self._client is not None

    @property
    def is_ready(self) -> bool:
        """Check if vector search may be used."""
        return self._ready

    async def build(self) -> IndexBuildReport:
        """Embed all sections concurrently.

        Safe to call more than once: when the index is already built, a build
        is in flight, a previous build failed, or no backend is configured,
        this returns immediately without calling the embedding service.

        Returns:
            Report describing what happened.
        """
        if self._client is None:
            return IndexBuildReport(
                status=OutcomeStatus.DEGRADED,
                reason="embedding backend not configured",
            )
        if self._ready:
            return IndexBuildReport(status=OutcomeStatus.SUCCESS, embedded=len(self.sections))
        if self._failed:
            return IndexBuildReport(
                status=OutcomeStatus.FAILED,
                reason="a previous index build failed",
            )
        if self._building:
            return IndexBuildReport(
                status=OutcomeStatus.DEGRADED,
                reason="index build already in progress",
            )

        self._building = True
        try:
            return await self._build()
        finally:
            self._building = False

    async def _build(self) -> IndexBuildReport:
        pending = [s for s in self.sections if s.embedding is None]
        results = await asyncio.gather(
            *(self._embed_section(section) for section in pending),
            return_exceptions=True,
        )
        failures = [r for r in results if isinstance(r, BaseException)]
        embedded = len(pending) - len(failures)

        if failures:
            self._failed = True
            logger.error(
                f"Failed to generate embeddings: {len(failures)} of {len(pending)} "
                f"requests failed (first error: {failures[0]!r}). Using keyword search."
            )
            return IndexBuildReport(
                status=OutcomeStatus.FAILED,
                embedded=embedded,
                failed=len(failures),
                reason=str(failures[0]),
            )

        try:
            self._index = self._build_faiss_index()
        except (ValueError, RuntimeError) as e:
            self._failed = True
            logger.error(f"Failed to build vector index: {e}. Using keyword search.")
            return IndexBuildReport(
                status=OutcomeStatus.FAILED,
                embedded=embedded,
                reason=str(e),
            )

        self._ready = True
        logger.info(f"Embedding index ready: {len(self.sections)} sections")
        return IndexBuildReport(status=OutcomeStatus.SUCCESS, embedded=embedded)

    async def _embed_section(self, section: Section) -> None:
        vector = await generate_embedding(self._client, section.content, self._embedding_model)
        section.attach_embedding(vector.tolist())

    def _build_faiss_index(self) -> "faiss.IndexFlatIP | None":
        import faiss

        if not self.sections:
            return None

        # Raises ValueError on vectors of unequal length
        embeddings: NDArray[np.float32] = np.array(
            [s.embedding for s in self.sections], dtype=np.float32
        )
        if embeddings.ndim != 2:
            raise ValueError(f"Unexpected embedding matrix shape {embeddings.shape}")

        index = faiss.IndexFlatIP(embeddings.shape[1])
        faiss.normalize_L2(embeddings)
        index.add(embeddings)
        return index

    def search(self, query_embedding: "NDArray[np.float32]", k: int) -> list[tuple[Section, float]]:
        """Return up to ``k`` sections ordered by cosine similarity.

        Args:
            query_embedding: Query vector of the same dimension as the index.
            k: Maximum number of hits.

        Raises:
            RuntimeError: If the index is not ready.
            ValueError: If the query dimension does not match the index.
        """
        import faiss

        if not self._ready:
            raise RuntimeError("Embedding index is not ready")
        if self._index is None or k <= 0:
            return []

        query = np.array(query_embedding, dtype=np.float32).reshape(1, -1)
        if query.shape[1] != self._index.d:
            raise ValueError(
                f"Query embedding has dimension {query.shape[1]}, index expects {self._index.d}"
            )
        faiss.normalize_L2(query)

        scores, indices = self._index.search(query, min(k, self._index.ntotal))
        hits: list[tuple[Section, float]] = []
        for score, idx in zip(scores[0], indices[0]):
            if idx < 0:  # FAISS returns -1 for missing results
                continue
            hits.append((self.sections[idx], float(score)))
        return hits
