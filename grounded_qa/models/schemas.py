from __future__ import annotations

from pydantic import BaseModel, Field


# Ingestion
class IngestRequest(BaseModel):
    """Request to ingest a corpus location (defaults to CORPUS_DIR)."""

    location: str | None = Field(default=None, description="Directory or .txt file to ingest")


class IngestResponse(BaseModel):
    report: str


# Questions
class AskRequest(BaseModel):
    """Question about the ingested corpus."""

    question: str = Field(..., min_length=1, description="User question")
    session_id: str = Field(default="default", min_length=1, description="Conversation session")


class AskResponse(BaseModel):
    answer: str


__all__ = [
    "IngestRequest",
    "IngestResponse",
    "AskRequest",
    "AskResponse",
]
