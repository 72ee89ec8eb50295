"""Application configuration settings."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_KNOWLEDGE_DOCUMENT = Path(__file__).resolve().parent.parent / "knowledge" / "data" / "knowledgeBase.json"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "PregnancyCompanion"
    app_version: str = "0.1.0"
    debug: bool = False
    api_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # OpenAI (single credential gates both embeddings and chat)
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-3.5-turbo"
    openai_embedding_model: str = "text-embedding-ada-002"

    # Chat generation
    chat_temperature: float = 0.7
    chat_max_tokens: int = 500

    # Retrieval
    retrieval_top_k: int = 3
    similarity_threshold: float = 0.70

    # Knowledge document (file path or http(s) URL)
    knowledge_document_source: str = str(DEFAULT_KNOWLEDGE_DOCUMENT)

    # Due-date preference file
    preferences_path: str = ".companion/preferences.json"

    # Observability
    metrics_backend: str = "inmemory"  # "inmemory" | "prometheus"

    @property
    def embeddings_enabled(self) -> bool:
        """Whether an external-service credential is configured."""
        return bool(self.openai_api_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Logs once when the OpenAI credential is absent, since the assistant then
    runs in keyword-only mode.
    """
    settings = Settings()

    if not settings.openai_api_key:
        logger.info(
            "OPENAI_API_KEY is not set. Embeddings and chat generation are disabled; "
            "retrieval falls back to keyword search."
        )

    return settings
