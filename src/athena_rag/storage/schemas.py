"""Pydantic DTOs exchanged with :class:`~athena_rag.storage.store.MetadataStore`."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class DocumentCreate(BaseModel):
    title: str
    source_type: str
    source_path: str
    description: str | None = None
    tags: str | None = None
    tenant_id: str | None = None


class ChunkCreate(BaseModel):
    chunk_text: str
    vector_point_id: str
    position: int


class QueryLogCreate(BaseModel):
    query_text: str
    results_count: int = 0
    model_used: str
    response_time_ms: int
    tenant_id: str | None = None


class StoredDocument(BaseModel):
    """Read model for a ``documents`` row."""

    model_config = ConfigDict(from_attributes=True)

    doc_id: int
    tenant_id: str | None = None
    title: str
    source_type: str
    source_path: str
    description: str | None = None
    tags: str | None = None
    created_at: datetime


class StoredChunk(BaseModel):
    """Read model for a ``chunks`` row."""

    model_config = ConfigDict(from_attributes=True)

    chunk_id: int
    doc_id: int
    chunk_text: str
    vector_point_id: str
    position: int
    created_at: datetime
