"""
Ingestion pipeline: load corpus, extract metadata, chunk, embed, and add to the vector index.
"""

from __future__ import annotations

import dataclasses
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from tqdm import tqdm

from grounded_qa.config import settings
from grounded_qa.embeddings.client import EmbeddingsClient
from grounded_qa.errors import EmptyCorpus, InvalidResponse
from grounded_qa.indexing.chunker import Chunker
from grounded_qa.indexing.loader import CorpusLoader
from grounded_qa.indexing.metadata import MetadataExtractor
from grounded_qa.vector_store.base import Document, Segment, VectorStore

logger = logging.getLogger(__name__)


def prepare_documents(documents: Sequence[Document], extractor: MetadataExtractor) -> List[Document]:
    """Drop blank documents and attach extracted metadata to the rest."""
    prepared: List[Document] = []
    for doc in documents:
        if not doc.text.strip():
            logger.info("Skipping blank document", extra={"document_id": doc.id})
            continue
        prepared.append(dataclasses.replace(doc, metadata=extractor.extract(doc.text)))
    return prepared


def embed_segments(
    segments: Sequence[Segment], embeddings_client: EmbeddingsClient, embed_batch: int = 64
) -> List[List[float]]:
    vectors: List[List[float]] = []
    for i in tqdm(range(0, len(segments), embed_batch), desc="Embedding", unit="batch"):
        batch = segments[i : i + embed_batch]
        vectors.extend(embeddings_client.embed_texts([s.text for s in batch]))
        logger.debug("Embedded batch", extra={"count": len(batch), "offset": i})
    return vectors


@dataclass
class IngestionSummary:
    location: str
    documents: int
    segments: int
    elapsed_sec: float


class IngestionService:
    """
    One ingestion run over a corpus location.

    Vectors for the whole run are added with a single `add_all`, so a failure
    anywhere (unreadable file, embedding error, dimension mismatch) leaves the
    index exactly as it was.
    """

    def __init__(
        self,
        vector_store: VectorStore,
        embeddings_client: EmbeddingsClient,
        extractor: MetadataExtractor,
        chunker: Chunker,
        loader: CorpusLoader | None = None,
        embed_batch: int = settings.embed_batch_size,
        logger_: logging.Logger | None = None,
    ) -> None:
        self.vector_store = vector_store
        self.embeddings_client = embeddings_client
        self.extractor = extractor
        self.chunker = chunker
        self.loader = loader or CorpusLoader()
        self.embed_batch = embed_batch
        self.logger = logger_ or logging.getLogger(__name__)

    def run(self, location: str | Path) -> IngestionSummary:
        started = time.time()
        documents = prepare_documents(self.loader.load(location), self.extractor)
        if not documents:
            raise EmptyCorpus(str(location))

        segments = self.chunker.split(documents)
        self.logger.info(
            "Chunked corpus",
            extra={"location": str(location), "documents": len(documents), "segments": len(segments)},
        )

        vectors = embed_segments(segments, self.embeddings_client, embed_batch=self.embed_batch)
        if len(vectors) != len(segments):
            raise InvalidResponse("embedding", f"expected {len(segments)} vectors, got {len(vectors)}")
        record_ids = self.vector_store.add_all(vectors, segments)

        elapsed = time.time() - started
        self.logger.info(
            "Ingestion completed",
            extra={
                "location": str(location),
                "segments_indexed": len(record_ids),
                "elapsed_sec": round(elapsed, 2),
            },
        )
        return IngestionSummary(
            location=str(location),
            documents=len(documents),
            segments=len(record_ids),
            elapsed_sec=elapsed,
        )


__all__ = ["IngestionService", "IngestionSummary", "prepare_documents", "embed_segments"]
