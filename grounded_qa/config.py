"""
Application configuration loaded from environment variables.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from pydantic import BaseModel, Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class MetadataRule(BaseModel):
    """One row of the metadata rule table: `contains` triggers `key=value`.

    A rule without `contains` is unconditional and acts as the key's fallback.
    """

    key: str = Field(..., min_length=1)
    value: str
    contains: str | None = None
    case_sensitive: bool = False


class FilterRule(BaseModel):
    """Query-time rule: a lower-cased `trigger` in the question selects `key=value`."""

    trigger: str = Field(..., min_length=1)
    key: str = Field(..., min_length=1)
    value: str


DEFAULT_METADATA_RULES: List[MetadataRule] = [
    MetadataRule(key="source", value="ISTQB-CTFL-v4.0.1"),
    MetadataRule(key="section", value="1.1", contains="1.1", case_sensitive=True),
    MetadataRule(key="section", value="1.2", contains="1.2", case_sensitive=True),
    MetadataRule(key="section", value="Geral"),
    MetadataRule(key="role", value="Analista de Teste"),
    MetadataRule(key="sdlc_type", value="sequencial", contains="sequencial"),
    MetadataRule(key="sdlc_type", value="iterativo"),
    MetadataRule(key="activities", value="planejamento, análise, execução"),
    MetadataRule(key="competencies", value="funcional, não-funcional"),
    MetadataRule(key="is_glossary", value="true", contains="glossário"),
    MetadataRule(key="is_glossary", value="false"),
]

DEFAULT_FILTER_RULES: List[FilterRule] = [
    FilterRule(trigger="sequencial", key="sdlc_type", value="sequencial"),
    FilterRule(trigger="iterativo", key="sdlc_type", value="iterativo"),
    FilterRule(trigger="glossário", key="is_glossary", value="true"),
]


class Settings(BaseSettings):
    """Centralised application settings."""

    model_config = SettingsConfigDict(
        env_file=(".env",),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    openai_api_key: SecretStr | None = Field(default=None, alias="OPENAI_API_KEY")
    llm_model_name: str = Field(default="gpt-4o-mini", alias="LLM_MODEL_NAME")
    llm_temperature: float = Field(default=0.0, ge=0.0, le=2.0, alias="LLM_TEMPERATURE")
    embedding_model_name: str = Field(default="text-embedding-3-small", alias="EMBEDDING_MODEL_NAME")
    embed_batch_size: int = Field(default=64, gt=0, alias="EMBED_BATCH_SIZE")

    service_timeout_sec: float = Field(default=30.0, gt=0, alias="SERVICE_TIMEOUT_SEC")
    service_max_retries: int = Field(default=1, ge=0, le=1, alias="SERVICE_MAX_RETRIES")
    service_retry_base_delay_sec: float = Field(default=1.0, ge=0, alias="SERVICE_RETRY_BASE_DELAY_SEC")
    service_retry_max_delay_sec: float = Field(default=8.0, ge=0, alias="SERVICE_RETRY_MAX_DELAY_SEC")

    vector_store_backend: str = Field(default="memory", alias="VECTOR_STORE_BACKEND")

    corpus_dir: str = Field(default="./data/corpus", alias="CORPUS_DIR")
    corpus_seed_example: bool = Field(default=False, alias="CORPUS_SEED_EXAMPLE")

    chunk_size_chars: int = Field(default=500, gt=0, alias="CHUNK_SIZE_CHARS")
    chunk_overlap_chars: int = Field(default=50, ge=0, alias="CHUNK_OVERLAP_CHARS")

    max_results: int = Field(default=3, gt=0, alias="MAX_RESULTS")
    min_score: float = Field(default=0.75, ge=-1.0, le=1.0, alias="MIN_SCORE")
    memory_window_size: int = Field(default=10, gt=0, alias="MEMORY_WINDOW_SIZE")
    max_sessions: int = Field(default=1000, gt=0, alias="MAX_SESSIONS")

    filter_rules: List[FilterRule] = Field(
        default_factory=lambda: list(DEFAULT_FILTER_RULES), alias="FILTER_RULES"
    )
    metadata_rules: List[MetadataRule] = Field(
        default_factory=lambda: list(DEFAULT_METADATA_RULES), alias="METADATA_RULES"
    )

    app_host: str = Field(default="0.0.0.0", alias="APP_HOST")
    app_port: int = Field(default=8000, alias="APP_PORT")

    @model_validator(mode="after")
    def _check_chunking(self) -> "Settings":
        if self.chunk_overlap_chars >= self.chunk_size_chars:
            raise ValueError("CHUNK_OVERLAP_CHARS must be smaller than CHUNK_SIZE_CHARS")
        return self


settings = Settings()


def setup_logging() -> logging.Logger:
    """
    Configure base logging for the app.
    """
    logging.basicConfig(
        level=logging.INFO,
        format="[%(asctime)s] [%(levelname)s] %(name)s - %(message)s",
    )
    return logging.getLogger("grounded_qa")


def public_settings() -> Dict[str, Any]:
    """
    Return settings without secrets for safe logging/inspection.
    """
    return settings.model_dump(
        exclude={"openai_api_key"},
        exclude_none=True,
    )


__all__ = [
    "Settings",
    "settings",
    "setup_logging",
    "public_settings",
    "MetadataRule",
    "FilterRule",
    "DEFAULT_METADATA_RULES",
    "DEFAULT_FILTER_RULES",
]
