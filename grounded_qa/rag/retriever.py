"""
Retriever: compile the metadata filter, embed the question, search the index.
"""

from __future__ import annotations

import logging
import threading
from typing import List

from grounded_qa.embeddings.client import EmbeddingsClient
from grounded_qa.errors import QueryCancelled
from grounded_qa.rag.filters import FilterCompiler
from grounded_qa.vector_store.base import ScoredSegment, VectorStore


def raise_if_cancelled(cancel: threading.Event | None, stage: str) -> None:
    if cancel is not None and cancel.is_set():
        raise QueryCancelled(f"query cancelled after {stage}")


class Retriever:
    def __init__(
        self,
        vector_store: VectorStore,
        embeddings_client: EmbeddingsClient,
        filter_compiler: FilterCompiler,
        min_score: float,
        top_k: int,
        logger_: logging.Logger | None = None,
    ) -> None:
        self.vector_store = vector_store
        self.embeddings_client = embeddings_client
        self.filter_compiler = filter_compiler
        self.min_score = min_score
        self.top_k = top_k
        self.logger = logger_ or logging.getLogger(__name__)

    def retrieve(
        self,
        query_text: str,
        min_score: float | None = None,
        top_k: int | None = None,
        cancel: threading.Event | None = None,
    ) -> List[ScoredSegment]:
        """Return scored segments; an empty list is a normal outcome, not an error."""
        min_score = self.min_score if min_score is None else min_score
        top_k = self.top_k if top_k is None else top_k

        predicate = self.filter_compiler.compile(query_text)
        embedding = self.embeddings_client.embed_text(query_text)
        raise_if_cancelled(cancel, "embedding")

        results = self.vector_store.search(embedding, predicate, min_score, top_k)
        self.logger.info(
            "Retrieved segments",
            extra={
                "filter": repr(predicate),
                "min_score": min_score,
                "top_k": top_k,
                "returned": len(results),
                "results": [{"segment_id": r.segment.id, "score": round(r.score, 3)} for r in results],
            },
        )
        return results


__all__ = ["Retriever", "raise_if_cancelled"]
