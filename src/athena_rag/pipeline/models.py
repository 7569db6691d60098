"""Request / result models for the ingestion and query pipelines."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field


class IngestRequest(BaseModel):
    """Metadata accompanying an uploaded file.

    Fields are plain strings so that blank or unsupported values reach the
    pipeline's own validation instead of failing at model construction.
    """

    source_type: str = ""
    title: str = ""
    description: str | None = None
    tags: str | None = None
    tenant_id: str | None = None


class SourceFile(BaseModel):
    """A readable file on local disk plus the name the user uploaded it as."""

    path: Path
    original_name: str


class IngestResult(BaseModel):
    document_id: int
    chunk_count: int


class SourceDocument(BaseModel):
    """Minimal description of a document that contributed context."""

    id: int
    title: str
    source_type: str
    source_path: str


class QueryAnswer(BaseModel):
    answer: str
    sources: list[SourceDocument] = Field(default_factory=list)
