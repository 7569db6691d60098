"""Relational metadata store for documents, chunks and query logs."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import Engine, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from athena_rag.errors import StorageError, wrap_error
from athena_rag.storage.database import get_engine
from athena_rag.storage.models import Base, ChunkModel, DocumentModel, QueryLogModel
from athena_rag.storage.schemas import (
    ChunkCreate,
    DocumentCreate,
    QueryLogCreate,
    StoredChunk,
    StoredDocument,
)

logger = logging.getLogger(__name__)

_COMPONENT = "storage.metadata_store"


class MetadataStore:
    """SQLAlchemy-backed persistence for the ingestion and query pipelines.

    Every public method runs in its own session and transaction; each
    call either commits fully or raises :class:`StorageError` with
    nothing written.

    Parameters
    ----------
    engine:
        Engine bound to the target database.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    @classmethod
    def from_url(cls, database_url: str, *, echo: bool = False) -> MetadataStore:
        return cls(get_engine(database_url, echo=echo))

    def create_schema(self) -> None:
        """Create any missing tables."""
        try:
            Base.metadata.create_all(self._engine)
        except SQLAlchemyError as exc:
            raise wrap_error(exc, StorageError, "Database error during create_schema", component=_COMPONENT) from exc

    def close(self) -> None:
        self._engine.dispose()

    # -- documents ------------------------------------------------------------

    def insert_document(self, doc: DocumentCreate) -> int:
        """Insert one ``documents`` row and return its generated id."""
        row = DocumentModel(**doc.model_dump())
        try:
            with self._session_factory.begin() as session:
                session.add(row)
                session.flush()
                doc_id = row.doc_id
        except SQLAlchemyError as exc:
            raise wrap_error(exc, StorageError, "Database error during insert_document", component=_COMPONENT) from exc
        if not doc_id:
            raise StorageError("Failed to insert document", context={"component": _COMPONENT})
        return doc_id

    def get_documents_by_ids(self, ids: Sequence[int]) -> list[StoredDocument]:
        """Fetch documents by id.  Empty input returns ``[]`` without querying."""
        if not ids:
            return []
        stmt = select(DocumentModel).where(DocumentModel.doc_id.in_(list(ids)))
        try:
            with self._session_factory() as session:
                rows = session.scalars(stmt).all()
                return [StoredDocument.model_validate(r) for r in rows]
        except SQLAlchemyError as exc:
            raise wrap_error(exc, StorageError, "Database error during get_documents_by_ids", component=_COMPONENT) from exc

    # -- chunks ---------------------------------------------------------------

    def insert_chunks(self, document_id: int, chunks: Sequence[ChunkCreate]) -> None:
        """Insert all *chunks* of *document_id* in one transaction.

        Any failing row rolls back every row of the call.
        """
        rows = [ChunkModel(doc_id=document_id, **c.model_dump()) for c in chunks]
        try:
            with self._session_factory.begin() as session:
                session.add_all(rows)
        except SQLAlchemyError as exc:
            logger.error("Chunk insert for document %s rolled back: %s", document_id, exc)
            raise wrap_error(
                exc,
                StorageError,
                "Failed to insert document chunks",
                component=_COMPONENT,
                document_id=document_id,
            ) from exc

    def get_chunks(self, document_id: int) -> list[StoredChunk]:
        """All chunks of *document_id* ordered by position."""
        stmt = select(ChunkModel).where(ChunkModel.doc_id == document_id).order_by(ChunkModel.position)
        try:
            with self._session_factory() as session:
                return [StoredChunk.model_validate(r) for r in session.scalars(stmt).all()]
        except SQLAlchemyError as exc:
            raise wrap_error(exc, StorageError, "Database error during get_chunks", component=_COMPONENT) from exc

    def count_chunks(self, document_id: int | None = None) -> int:
        stmt = select(func.count()).select_from(ChunkModel)
        if document_id is not None:
            stmt = stmt.where(ChunkModel.doc_id == document_id)
        try:
            with self._session_factory() as session:
                return session.scalar(stmt) or 0
        except SQLAlchemyError as exc:
            raise wrap_error(exc, StorageError, "Database error during count_chunks", component=_COMPONENT) from exc

    # -- query logs -----------------------------------------------------------

    def insert_query_log(self, entry: QueryLogCreate) -> None:
        try:
            with self._session_factory.begin() as session:
                session.add(QueryLogModel(**entry.model_dump()))
        except SQLAlchemyError as exc:
            raise wrap_error(exc, StorageError, "Database error during insert_query_log", component=_COMPONENT) from exc
