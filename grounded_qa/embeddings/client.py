"""
OpenAI embeddings client.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

import openai
from openai import OpenAI

from grounded_qa.config import settings
from grounded_qa.errors import EmbeddingServiceError, InvalidInput, InvalidResponse, ServiceCallError
from grounded_qa.retry import call_with_retry, translate_openai_error

DEFAULT_EMBEDDING_MODEL = settings.embedding_model_name
DEFAULT_EMBED_BATCH_SIZE = settings.embed_batch_size

logger = logging.getLogger(__name__)


class EmbeddingsClient:
    def __init__(
        self,
        model: str = DEFAULT_EMBEDDING_MODEL,
        batch_size: int = DEFAULT_EMBED_BATCH_SIZE,
        client: OpenAI | None = None,
        timeout: float = settings.service_timeout_sec,
        max_retries: int = settings.service_max_retries,
        retry_base_delay: float = settings.service_retry_base_delay_sec,
        retry_max_delay: float = settings.service_retry_max_delay_sec,
    ) -> None:
        self.model = model
        self.batch_size = batch_size
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self.retry_max_delay = retry_max_delay
        api_key = settings.openai_api_key.get_secret_value() if settings.openai_api_key else None
        # SDK retries off; call_with_retry owns retrying.
        self.client = client or OpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            return []

        embeddings: List[List[float]] = []
        for i in range(0, len(texts), self.batch_size):
            batch = list(texts[i : i + self.batch_size])
            try:
                embeddings.extend(
                    call_with_retry(
                        lambda: self._embed_batch(batch),
                        operation="embedding",
                        max_retries=self.max_retries,
                        base_delay=self.retry_base_delay,
                        max_delay=self.retry_max_delay,
                    )
                )
            except ServiceCallError as exc:
                logger.error("Embedding request failed", extra={"batch_size": len(batch), "error": str(exc)})
                raise EmbeddingServiceError(str(exc)) from exc
        return embeddings

    def embed_text(self, text: str) -> List[float]:
        return self.embed_texts([text])[0]

    def _embed_batch(self, batch: List[str]) -> List[List[float]]:
        try:
            response = self.client.embeddings.create(model=self.model, input=batch)
        except openai.OpenAIError as exc:
            raise translate_openai_error("embedding", exc, InvalidInput) from exc

        data = sorted(response.data, key=lambda item: item.index)
        if len(data) != len(batch):
            raise InvalidResponse("embedding", f"expected {len(batch)} vectors, got {len(data)}")
        return [list(item.embedding) for item in data]


__all__ = ["EmbeddingsClient", "DEFAULT_EMBEDDING_MODEL"]
