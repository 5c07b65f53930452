"""
Vector store interface and shared types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Protocol, Sequence, Tuple, Union

Vector = Tuple[float, ...]


@dataclass(frozen=True)
class Document:
    id: str
    text: str
    metadata: Dict[str, str] = field(default_factory=dict)
    source: str | None = None


@dataclass(frozen=True)
class Segment:
    """A span `text == parent.text[start:end]` of one document."""

    id: str
    document_id: str
    index: int
    text: str
    start: int
    end: int
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class VectorRecord:
    record_id: int
    segment: Segment
    vector: Vector
    metadata: Mapping[str, str]


@dataclass(frozen=True)
class ScoredSegment:
    segment: Segment
    score: float
    record_id: int


@dataclass(frozen=True)
class MatchAll:
    def matches(self, metadata: Mapping[str, str]) -> bool:
        return True


@dataclass(frozen=True)
class Equals:
    key: str
    value: str

    def matches(self, metadata: Mapping[str, str]) -> bool:
        # A key absent from the record never matches.
        return self.key in metadata and metadata[self.key] == self.value


FilterPredicate = Union[MatchAll, Equals]
MATCH_ALL = MatchAll()


class VectorStore(Protocol):
    def add_all(self, vectors: Sequence[Sequence[float]], segments: Sequence[Segment]) -> List[int]:
        ...

    def search(
        self,
        query: Sequence[float],
        filter: FilterPredicate,
        min_score: float,
        top_k: int,
    ) -> List[ScoredSegment]:
        ...


__all__ = [
    "Vector",
    "Document",
    "Segment",
    "VectorRecord",
    "ScoredSegment",
    "MatchAll",
    "Equals",
    "FilterPredicate",
    "MATCH_ALL",
    "VectorStore",
]
