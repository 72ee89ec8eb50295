"""Embedding generation and vector similarity for knowledge sections.

Uses OpenAI embeddings (text-embedding-ada-002 by default).
"""

import logging
import time
from typing import TYPE_CHECKING, Sequence

import numpy as np

from companion.observability import get_metrics_backend

if TYPE_CHECKING:
    from numpy.typing import NDArray
    from openai import AsyncOpenAI

logger = logging.getLogger(__name__)

DEFAULT_EMBEDDING_MODEL = "text-embedding-ada-002"


async def generate_embedding(
    client: "AsyncOpenAI",
    text: str,
    model: str | None = None,
) -> "NDArray[np.float32]":
    """Generate the embedding for a single text.

    Args:
        client: OpenAI async client.
        text: Text to embed.
        model: Model name (default: text-embedding-ada-002).

    Returns:
        NumPy array of shape (embedding_dim,).

    Raises:
        Whatever the OpenAI client raises; callers decide how to degrade.
    """
    metrics = get_metrics_backend()
    start_time = time.perf_counter()
    status_code = 500
    try:
        response = await client.embeddings.create(
            model=model or DEFAULT_EMBEDDING_MODEL,
            input=text,
        )
        status_code = 200
    finally:
        duration_ms = (time.perf_counter() - start_time) * 1000
        metrics.observe_external_api("openai", "embeddings", status_code, duration_ms)
        logger.debug(
            "OpenAI API embeddings status=%s duration_ms=%.2f", status_code, duration_ms
        )

    return np.asarray(response.data[0].embedding, dtype=np.float32)


def cosine_similarity(a: Sequence[float] | np.ndarray, b: Sequence[float] | np.ndarray) -> float:
    """Cosine similarity ``(a . b) / (|a| * |b|)``.

    Returns 0.0 when either vector has zero length.
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    norm = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if norm == 0.0:
        return 0.0
    return float(np.dot(va, vb) / norm)
