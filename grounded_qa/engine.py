"""
Composition root: wires ingestion and grounded answering around one vector index.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from grounded_qa.config import Settings, settings as default_settings
from grounded_qa.embeddings.client import EmbeddingsClient
from grounded_qa.errors import EmptyCorpus, GroundedQAError
from grounded_qa.indexing.chunker import Chunker
from grounded_qa.indexing.loader import CorpusLoader
from grounded_qa.indexing.metadata import MetadataExtractor
from grounded_qa.indexing.pipeline import IngestionService, IngestionSummary
from grounded_qa.llm.client import LLMClient
from grounded_qa.rag.filters import FilterCompiler
from grounded_qa.rag.memory import ConversationMemory
from grounded_qa.rag.pipeline import GroundedAnswerService
from grounded_qa.rag.retriever import Retriever
from grounded_qa.vector_store import create_vector_store
from grounded_qa.vector_store.base import VectorStore

DEFAULT_SESSION_ID = "default"

logger = logging.getLogger(__name__)


def format_success_report(summary: IngestionSummary) -> str:
    return f"Ingestão concluída: {summary.documents} documentos, {summary.segments} segmentos indexados."


def format_failure_report(exc: Exception) -> str:
    return f"Falha na ingestão: {exc}"


class RagEngine:
    """The two operations the front ends delegate to: `ingest` and `ask`."""

    def __init__(
        self,
        ingestion: IngestionService,
        answers: GroundedAnswerService,
        vector_store: VectorStore,
        corpus_dir: str,
    ) -> None:
        self.ingestion = ingestion
        self.answers = answers
        self.vector_store = vector_store
        self.corpus_dir = corpus_dir

    @property
    def retriever(self) -> Retriever:
        return self.answers.retriever

    def ingest(self, location: str | Path | None = None) -> str:
        """Run one ingestion; always returns a human-readable report."""
        location = location or self.corpus_dir
        try:
            summary = self.ingestion.run(location)
        except EmptyCorpus as exc:
            logger.warning("Empty corpus", extra={"location": str(location)})
            return str(exc)
        except GroundedQAError as exc:
            logger.exception("Ingestion failed", extra={"location": str(location)})
            return format_failure_report(exc)
        return format_success_report(summary)

    def ask(
        self,
        question: str,
        session_id: str = DEFAULT_SESSION_ID,
        cancel: threading.Event | None = None,
    ) -> str:
        return self.answers.answer(session_id, question, cancel=cancel)


def build_engine(
    settings_: Settings | None = None,
    embeddings_client: EmbeddingsClient | None = None,
    llm_client: LLMClient | None = None,
    vector_store: VectorStore | None = None,
) -> RagEngine:
    """Build a fresh engine; collaborators can be injected (tests, scripts)."""
    cfg = settings_ or default_settings

    embeddings_client = embeddings_client or EmbeddingsClient(
        model=cfg.embedding_model_name,
        batch_size=cfg.embed_batch_size,
        timeout=cfg.service_timeout_sec,
        max_retries=cfg.service_max_retries,
        retry_base_delay=cfg.service_retry_base_delay_sec,
        retry_max_delay=cfg.service_retry_max_delay_sec,
    )
    llm_client = llm_client or LLMClient(
        model=cfg.llm_model_name,
        temperature=cfg.llm_temperature,
        timeout=cfg.service_timeout_sec,
        max_retries=cfg.service_max_retries,
        retry_base_delay=cfg.service_retry_base_delay_sec,
        retry_max_delay=cfg.service_retry_max_delay_sec,
    )
    vector_store = vector_store if vector_store is not None else create_vector_store(cfg.vector_store_backend)

    ingestion = IngestionService(
        vector_store=vector_store,
        embeddings_client=embeddings_client,
        extractor=MetadataExtractor(cfg.metadata_rules),
        chunker=Chunker(target_size=cfg.chunk_size_chars, overlap=cfg.chunk_overlap_chars),
        loader=CorpusLoader(seed_example=cfg.corpus_seed_example),
        embed_batch=cfg.embed_batch_size,
    )
    retriever = Retriever(
        vector_store=vector_store,
        embeddings_client=embeddings_client,
        filter_compiler=FilterCompiler(cfg.filter_rules),
        min_score=cfg.min_score,
        top_k=cfg.max_results,
    )
    answers = GroundedAnswerService(
        retriever=retriever,
        llm_client=llm_client,
        memory=ConversationMemory(cfg.memory_window_size, max_sessions=cfg.max_sessions),
    )
    return RagEngine(
        ingestion=ingestion,
        answers=answers,
        vector_store=vector_store,
        corpus_dir=cfg.corpus_dir,
    )


__all__ = [
    "RagEngine",
    "build_engine",
    "DEFAULT_SESSION_ID",
    "format_success_report",
    "format_failure_report",
]
