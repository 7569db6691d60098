"""FastAPI application exposing ingestion and querying as a REST API."""

from __future__ import annotations

import logging
import shutil
import tempfile
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import Depends, FastAPI, File, Form, Header, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from athena_rag.config import settings
from athena_rag.errors import AppError, ValidationError
from athena_rag.pipeline.factory import RAGServices, build_services
from athena_rag.pipeline.models import IngestRequest, SourceFile

logger = logging.getLogger(__name__)


# ── Request / Response schemas ────────────────────────────────────────
class QueryRequest(BaseModel):
    """Incoming question from the user."""

    query: str = ""


class Envelope(BaseModel):
    """Success envelope wrapping every response payload."""

    success: bool = True
    data: Any = None


# ── App factory ───────────────────────────────────────────────────────
def create_app(
    services: RAGServices | None = None,
    *,
    api_key: str | None = None,
    api_key_disabled: bool | None = None,
) -> FastAPI:
    """Build the API.

    Parameters
    ----------
    services:
        Pre-built services (tests).  When *None* they are built from the
        global settings at startup and closed at shutdown.
    api_key:
        Expected ``x-api-key`` header value; defaults to
        ``settings.api_key``.  While the check is enabled an empty key
        rejects every request.
    api_key_disabled:
        Skip the check entirely; defaults to ``settings.api_key_disabled``.
    """
    expected_key = settings.api_key if api_key is None else api_key
    auth_disabled = settings.api_key_disabled if api_key_disabled is None else api_key_disabled

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logging.basicConfig(level=settings.log_level.upper())
        owned = app.state.services is None
        if owned:
            app.state.services = build_services(settings)
        if auth_disabled:
            logger.warning("API key check disabled (API_KEY_DISABLED is set)")
        elif not expected_key:
            logger.warning("API_KEY is empty; every /ingest and /query request will be rejected")
        yield
        if owned:
            app.state.services.close()

    app = FastAPI(
        title="Athena RAG API",
        version="0.1.0",
        description="Document ingestion and retrieval-augmented question answering.",
        lifespan=lifespan,
    )
    app.state.services = services

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.expected:
            logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)
        else:
            logger.error("%s %s -> %s: %r", request.method, request.url.path, exc.status_code, exc)
        return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.to_dict()})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        fields = [str(err["loc"][-1]) for err in exc.errors() if err.get("loc")]
        message = "No document file uploaded" if "file" in fields else "Invalid request body"
        error = ValidationError(
            message,
            context={"component": "serving.app", "field": fields[0] if fields else None, "fields": fields},
        )
        return await app_error_handler(request, error)

    def require_api_key(x_api_key: str | None = Header(default=None)) -> None:
        if auth_disabled:
            return
        if not expected_key or x_api_key != expected_key:
            raise AppError(
                "Invalid or missing API key",
                status_code=401,
                context={"component": "serving.auth"},
            )

    def get_services(request: Request) -> RAGServices:
        return request.app.state.services

    # ── Routes ────────────────────────────────────────────────────────
    @app.get("/health")
    async def health() -> dict[str, str]:
        """Liveness probe."""
        return {"status": "ok"}

    @app.post("/ingest", response_model=Envelope, status_code=201, dependencies=[Depends(require_api_key)])
    def ingest(
        file: UploadFile = File(...),
        source_type: str = Form(""),
        title: str = Form(""),
        description: str | None = Form(None),
        tags: str | None = Form(None),
        services: RAGServices = Depends(get_services),
    ) -> Envelope:
        """Ingest an uploaded PDF / DOCX / TXT file."""
        original_name = Path(file.filename or "upload").name
        with tempfile.NamedTemporaryFile(suffix=Path(original_name).suffix, delete=False) as tmp:
            tmp_path = Path(tmp.name)
        try:
            with tmp_path.open("wb") as staged:
                shutil.copyfileobj(file.file, staged)
            result = services.ingestion.ingest(
                IngestRequest(source_type=source_type, title=title, description=description, tags=tags),
                SourceFile(path=tmp_path, original_name=original_name),
            )
        finally:
            tmp_path.unlink(missing_ok=True)
        return Envelope(data=result.model_dump())

    @app.post("/query", response_model=Envelope, dependencies=[Depends(require_api_key)])
    def query(request: QueryRequest, services: RAGServices = Depends(get_services)) -> Envelope:
        """Answer a question from the ingested documents."""
        answer = services.query.answer(request.query)
        return Envelope(data=answer.model_dump())

    return app


app = create_app()
