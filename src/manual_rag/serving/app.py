"""FastAPI application exposing ingestion, question answering and maintenance."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from manual_rag.config import settings
from manual_rag.container import RagServices, build_services
from manual_rag.errors import EmptyContentError, ManualRagError, classify_error
from manual_rag.events import configure_logging
from manual_rag.generation.models import Answer
from manual_rag.ingestion.models import BatchSummary, IngestionOutcome

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_services() -> RagServices:
    """Services shared by every request; override in tests."""
    return build_services(settings)


# ── Request schemas ───────────────────────────────────────────────────
class AskRequest(BaseModel):
    question: str = ""
    document_id: str | None = None


class IngestRequest(BaseModel):
    document_id: str | None = None
    source_uri: str | None = None
    process_all: bool = False


def error_response(exc: BaseException) -> JSONResponse:
    report = classify_error(exc)
    return JSONResponse(
        status_code=report.status_code,
        content={"error": report.error, "details": report.details},
    )


# ── Routes ────────────────────────────────────────────────────────────
router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@router.post("/rag/ask", response_model=Answer)
def ask(request: AskRequest, services: RagServices = Depends(get_services)) -> Answer:
    """Answer a question from the ingested manuals."""
    return services.qa.ask(request.question, request.document_id)


@router.get("/rag/ask")
def ask_self_test(test: bool = False, services: RagServices = Depends(get_services)) -> Any:
    """``?test=true`` runs a probe retrieval; plain GETs are rejected."""
    if not test:
        return JSONResponse(
            status_code=400,
            content={
                "error": "Use POST to ask a question, or GET with ?test=true for a self-test",
                "details": "Missing test=true",
            },
        )
    return services.qa.health_check()


@router.post("/rag/ingest")
def ingest(request: IngestRequest, services: RagServices = Depends(get_services)) -> Any:
    """Ingest one manual, or every registered manual with ``process_all``."""
    if request.process_all:
        summary: BatchSummary = services.orchestrator.run()
        return summary.model_dump()

    if not request.document_id or not request.source_uri:
        raise ValueError("document_id and source_uri are required")

    document = services.registry.add(request.document_id, request.source_uri)
    outcome: IngestionOutcome = services.pipeline.ingest(document)
    if outcome.success:
        return outcome.model_dump()
    return JSONResponse(
        status_code=outcome.status_code or EmptyContentError.status_code,
        content=outcome.model_dump(mode="json"),
    )


@router.get("/rag/ingest")
def ingest_status(document_id: str | None = None, services: RagServices = Depends(get_services)) -> Any:
    """Processing status of one document, or of the whole corpus."""
    return services.maintenance.status(document_id).model_dump(mode="json")


@router.post("/rag/wipe")
def wipe(services: RagServices = Depends(get_services)) -> dict[str, Any]:
    """Delete every stored chunk."""
    report = services.maintenance.wipe()
    return {"success": True, "message": report.message, **report.model_dump(by_alias=True)}


@router.get("/rag/wipe")
def wipe_overview(services: RagServices = Depends(get_services)) -> dict[str, Any]:
    """Chunk count and a sample of recent rows."""
    return services.maintenance.overview().model_dump(mode="json")


# ── App factory ───────────────────────────────────────────────────────
def create_app() -> FastAPI:
    configure_logging(settings.log_level)
    application = FastAPI(
        title="Manual RAG API",
        version="0.1.0",
        description="Question answering over equipment manuals.",
    )
    application.include_router(router)

    @application.exception_handler(ManualRagError)
    async def pipeline_error(request: Request, exc: ManualRagError) -> JSONResponse:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
        return error_response(exc)

    @application.exception_handler(ValueError)
    async def bad_request(request: Request, exc: ValueError) -> JSONResponse:
        return error_response(exc)

    @application.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("%s %s raised an unexpected error", request.method, request.url.path)
        return error_response(exc)

    return application


app = create_app()
