from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from grounded_qa.engine import RagEngine
from grounded_qa.models.schemas import AskRequest, AskResponse, IngestRequest, IngestResponse

router = APIRouter()
logger = logging.getLogger(__name__)


def get_engine(request: Request) -> RagEngine:
    return request.app.state.engine


@router.post("/api/v1/ingest", response_model=IngestResponse, summary="Ingest corpus")
def ingest(
    ingest_request: IngestRequest,
    engine: RagEngine = Depends(get_engine),
) -> IngestResponse:
    logger.info("Ingest requested", extra={"location": ingest_request.location})
    report = engine.ingest(ingest_request.location)
    logger.info("Ingest finished", extra={"report": report})
    return IngestResponse(report=report)


@router.post("/api/v1/ask", response_model=AskResponse, summary="Ask a question about the corpus")
def ask(request: AskRequest, engine: RagEngine = Depends(get_engine)) -> AskResponse:
    question = (request.question or "").strip()
    if not question:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Question must not be empty")

    logger.info("Ask request", extra={"len": len(question), "session_id": request.session_id})
    return AskResponse(answer=engine.ask(question, session_id=request.session_id))


__all__ = ["router", "get_engine"]
