"""Ingestion orchestrator: load → chunk → embed → relational rows → vectors.

Write order
-----------
The relational store is written before the vector index and there is no
transaction spanning both:

1. ``documents`` row (a failure here leaves nothing behind);
2. every ``chunks`` row in one transaction (all-or-nothing);
3. vector-index upsert of one point per chunk.

If step 3 fails the document and its chunks stay registered without
searchable vectors ("orphaned chunks").  :meth:`IngestionPipeline.find_orphaned_chunks`
detects that state; repairing it is left to an operator.
"""

from __future__ import annotations

import logging
import os
import time
from typing import TYPE_CHECKING

from athena_rag.config import settings
from athena_rag.errors import AppError, EmbeddingError, ExtractionError, StorageError, ValidationError
from athena_rag.ingestion.chunker import chunk_documents
from athena_rag.ingestion.loader import SourceType, load_document
from athena_rag.pipeline.models import IngestRequest, IngestResult, SourceFile
from athena_rag.retrieval.models import VectorPoint, make_point_id
from athena_rag.storage.schemas import ChunkCreate, DocumentCreate, StoredChunk

if TYPE_CHECKING:
    from athena_rag.ingestion.embedder import EmbeddingGateway
    from athena_rag.retrieval.base import VectorIndexBase
    from athena_rag.storage.store import MetadataStore

logger = logging.getLogger(__name__)

_COMPONENT = "pipeline.ingest"


class IngestionPipeline:
    """Turn one uploaded file into a document, its chunks and their vectors.

    Parameters
    ----------
    store:
        Relational metadata store.
    index:
        Vector-index gateway.
    embedder:
        Embedding gateway.
    collection_name:
        Vector-index collection shared by all documents.
    chunk_size / chunk_overlap:
        Chunker configuration, in characters.
    max_retries:
        Attempts for transient embedding failures.
    retry_backoff:
        Base wait in seconds; doubled after every failed attempt.
    """

    def __init__(
        self,
        store: MetadataStore,
        index: VectorIndexBase,
        embedder: EmbeddingGateway,
        *,
        collection_name: str = settings.chroma_collection,
        chunk_size: int = settings.chunk_size,
        chunk_overlap: int = settings.chunk_overlap,
        max_retries: int = settings.embedding_max_retries,
        retry_backoff: float = settings.embedding_retry_backoff,
    ) -> None:
        self._store = store
        self._index = index
        self._embedder = embedder
        self.collection_name = collection_name
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.max_retries = max(1, max_retries)
        self.retry_backoff = retry_backoff

    def ingest(self, request: IngestRequest, source_file: SourceFile) -> IngestResult:
        """Ingest *source_file* described by *request*.

        Raises
        ------
        ValidationError
            Missing file, blank title / source type, unsupported type.
        ExtractionError
            No usable text in the file.
        EmbeddingError
            The embedding model failed; nothing has been written.
        StorageError
            A store write failed.  When raised by the vector upsert, the
            document and chunk rows remain (see module docstring).
        """
        try:
            return self._ingest(request, source_file)
        except AppError:
            raise
        except Exception as exc:
            logger.exception("Unexpected error in ingestion pipeline")
            raise AppError(
                "Unexpected error in ingestion pipeline",
                expected=False,
                context={"component": _COMPONENT, "cause": type(exc).__name__},
            ) from exc

    def _ingest(self, request: IngestRequest, source_file: SourceFile) -> IngestResult:
        source_type = self._validate(request, source_file)

        # ── load & chunk ──────────────────────────────────────────────
        units = load_document(source_file.path, source_type)
        for unit in units:
            unit.metadata["source"] = source_file.original_name
        chunks = chunk_documents(units, chunk_size=self.chunk_size, chunk_overlap=self.chunk_overlap)
        if not chunks:
            raise ExtractionError(
                f"No non-blank chunks produced from {source_file.original_name}",
                context={"component": _COMPONENT},
            )
        texts = [c.page_content for c in chunks]
        logger.info("Chunked %s into %d chunk(s)", source_file.original_name, len(texts))

        # ── embed ─────────────────────────────────────────────────────
        vectors = self._embed_with_retry(texts)
        if len(vectors) != len(texts) or any(not v for v in vectors):
            raise EmbeddingError(
                f"Embedding produced {len(vectors)} usable vectors for {len(texts)} chunks",
                context={"component": _COMPONENT},
            )

        # ── relational writes ─────────────────────────────────────────
        doc_id = self._store.insert_document(
            DocumentCreate(
                title=request.title.strip(),
                source_type=source_type.value,
                source_path=source_file.original_name,
                description=request.description or None,
                tags=request.tags or None,
                tenant_id=request.tenant_id,
            )
        )
        point_ids = [make_point_id(doc_id, pos) for pos in range(len(texts))]
        self._store.insert_chunks(
            doc_id,
            [
                ChunkCreate(chunk_text=text, vector_point_id=pid, position=pos)
                for pos, (text, pid) in enumerate(zip(texts, point_ids))
            ],
        )

        # ── vector write ──────────────────────────────────────────────
        points = [
            VectorPoint(
                id=pid,
                vector=vector,
                payload=_payload(doc_id, text, pos, request.tenant_id),
            )
            for pos, (pid, text, vector) in enumerate(zip(point_ids, texts, vectors))
        ]
        try:
            self._index.upsert(self.collection_name, points)
        except AppError as exc:
            logger.error(
                "Vector upsert failed for document %s; %d chunk row(s) left without vectors: %s",
                doc_id,
                len(points),
                exc.message,
            )
            raise StorageError(
                f"Document {doc_id} was registered but its vectors could not be indexed: {exc.message}",
                context={
                    "component": _COMPONENT,
                    "document_id": doc_id,
                    "orphaned_chunks": len(points),
                },
            ) from exc

        logger.info("Ingested document %s (%d chunks)", doc_id, len(points))
        return IngestResult(document_id=doc_id, chunk_count=len(points))

    def find_orphaned_chunks(self, document_id: int) -> list[StoredChunk]:
        """Chunk rows of *document_id* with no live point in the vector index."""
        chunks = self._store.get_chunks(document_id)
        live = self._index.fetch_payloads(self.collection_name, [c.vector_point_id for c in chunks])
        return [c for c in chunks if c.vector_point_id not in live]

    # -- internals ------------------------------------------------------------

    @staticmethod
    def _validate(request: IngestRequest, source_file: SourceFile) -> SourceType:
        if not source_file.path.is_file() or not os.access(source_file.path, os.R_OK):
            raise ValidationError(
                f"Document file not found at path: {source_file.path}",
                context={"component": _COMPONENT, "field": "file"},
            )
        if not request.title or not request.title.strip():
            raise ValidationError(
                "Missing required field: title",
                context={"component": _COMPONENT, "field": "title"},
            )
        if not request.source_type or not request.source_type.strip():
            raise ValidationError(
                "Missing required field: source_type",
                context={"component": _COMPONENT, "field": "source_type"},
            )
        return SourceType.parse(request.source_type)

    def _embed_with_retry(self, texts: list[str]) -> list[list[float]]:
        attempt = 1
        while True:
            try:
                return self._embedder.embed_batch(texts)
            except EmbeddingError as exc:
                if not exc.transient or attempt >= self.max_retries:
                    raise
                wait = self.retry_backoff * 2 ** (attempt - 1)
                logger.warning(
                    "Retry %d/%d for embedding (wait %.1fs): %s",
                    attempt,
                    self.max_retries,
                    wait,
                    exc.message,
                )
                time.sleep(wait)
                attempt += 1


def _payload(doc_id: int, text: str, position: int, tenant_id: str | None) -> dict:
    payload = {"doc_id": doc_id, "text": text, "position": position}
    if tenant_id:
        payload["tenant_id"] = tenant_id
    return payload
