"""
In-memory VectorStore implementation with exhaustive cosine search.
"""

from __future__ import annotations

import heapq
import logging
import math
import threading
from typing import List, Sequence, Tuple

from grounded_qa.errors import DimensionMismatch
from grounded_qa.vector_store.base import (
    FilterPredicate,
    ScoredSegment,
    Segment,
    Vector,
    VectorRecord,
    VectorStore,
)

logger = logging.getLogger(__name__)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    na = math.sqrt(sum(x * x for x in a))
    nb = math.sqrt(sum(y * y for y in b))
    if na == 0 or nb == 0:
        return 0.0
    return dot / (na * nb)


class InMemoryVectorIndex(VectorStore):
    """
    Single-writer / many-reader index.

    Writers serialize on `_write_lock` and publish a new immutable snapshot with
    one assignment; readers grab the current snapshot without locking, so a
    search sees either all records of a batch or none of them.
    """

    def __init__(self) -> None:
        self._write_lock = threading.Lock()
        # (records, dimension, next_id)
        self._snapshot: Tuple[Tuple[VectorRecord, ...], int | None, int] = ((), None, 1)
        logger.info("InMemoryVectorIndex initialised")

    @property
    def dimension(self) -> int | None:
        return self._snapshot[1]

    def __len__(self) -> int:
        return len(self._snapshot[0])

    def records(self) -> Tuple[VectorRecord, ...]:
        return self._snapshot[0]

    def add_all(self, vectors: Sequence[Sequence[float]], segments: Sequence[Segment]) -> List[int]:
        if len(vectors) != len(segments):
            raise ValueError(f"got {len(vectors)} vectors for {len(segments)} segments")
        if not vectors:
            return []

        with self._write_lock:
            records, dimension, next_id = self._snapshot
            expected = dimension if dimension is not None else len(vectors[0])
            batch: List[Vector] = []
            for vec in vectors:
                if len(vec) != expected:
                    raise DimensionMismatch(expected, len(vec))
                batch.append(tuple(float(x) for x in vec))

            new_records = tuple(
                VectorRecord(record_id=next_id + i, segment=seg, vector=vec, metadata=seg.metadata)
                for i, (vec, seg) in enumerate(zip(batch, segments))
            )
            self._snapshot = (records + new_records, expected, next_id + len(new_records))

        ids = [r.record_id for r in new_records]
        logger.info(
            "Added records to index",
            extra={"count": len(ids), "first_id": ids[0], "dimension": expected},
        )
        return ids

    def search(
        self,
        query: Sequence[float],
        filter: FilterPredicate,
        min_score: float,
        top_k: int,
    ) -> List[ScoredSegment]:
        records, dimension, _ = self._snapshot
        if top_k <= 0 or not records:
            return []
        if len(query) != dimension:
            raise DimensionMismatch(dimension, len(query))

        candidates = []
        for record in records:
            if not filter.matches(record.metadata):
                continue
            score = cosine_similarity(query, record.vector)
            if score < min_score:
                continue
            candidates.append((score, record))

        best = heapq.nsmallest(top_k, candidates, key=lambda item: (-item[0], item[1].record_id))
        return [
            ScoredSegment(segment=record.segment, score=score, record_id=record.record_id)
            for score, record in best
        ]


__all__ = ["InMemoryVectorIndex", "cosine_similarity"]
