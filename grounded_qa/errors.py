"""
Error family shared by ingestion, retrieval and the external service adapters.
"""

from __future__ import annotations


class GroundedQAError(Exception):
    """Base class for all errors raised by the engine."""


class IngestionError(GroundedQAError):
    """Corpus could not be ingested (missing location, unreadable source, empty corpus)."""


class EmptyCorpus(IngestionError):
    """The corpus location holds no documents with text."""

    def __init__(self, location: str) -> None:
        super().__init__(f"Nenhum documento encontrado no caminho: {location}")
        self.location = location


class DimensionMismatch(GroundedQAError):
    """A vector's dimension differs from the dimension established by the index."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"expected vector dimension {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class QueryCancelled(GroundedQAError):
    """The caller cancelled the query at an external-call boundary."""


# Per-attempt failures reported by the embedding/completion adapters.


class ServiceCallError(GroundedQAError):
    """A single call to an external service failed."""

    transient = False

    def __init__(self, service: str, message: str) -> None:
        super().__init__(f"{service}: {message}")
        self.service = service


class RateLimited(ServiceCallError):
    transient = True


class ServiceTimeout(ServiceCallError):
    transient = True


class InvalidInput(ServiceCallError):
    """The service rejected the request payload."""


class InvalidResponse(ServiceCallError):
    """The service answered with something that cannot be used."""


# Failures surfaced to the engine once retries are exhausted.


class ExternalServiceError(GroundedQAError):
    """An external collaborator failed persistently."""


class EmbeddingServiceError(ExternalServiceError):
    pass


class CompletionServiceError(ExternalServiceError):
    pass


__all__ = [
    "GroundedQAError",
    "IngestionError",
    "EmptyCorpus",
    "DimensionMismatch",
    "QueryCancelled",
    "ServiceCallError",
    "RateLimited",
    "ServiceTimeout",
    "InvalidInput",
    "InvalidResponse",
    "ExternalServiceError",
    "EmbeddingServiceError",
    "CompletionServiceError",
]
