"""Query orchestrator: embed → search → resolve sources → generate → log."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from athena_rag.config import settings
from athena_rag.errors import AppError, LoggingError, ValidationError
from athena_rag.pipeline.models import QueryAnswer, SourceDocument
from athena_rag.storage.schemas import QueryLogCreate

if TYPE_CHECKING:
    from athena_rag.generation.generator import AnswerGenerator
    from athena_rag.ingestion.embedder import EmbeddingGateway
    from athena_rag.retrieval.base import VectorIndexBase
    from athena_rag.retrieval.models import SearchHit
    from athena_rag.storage.store import MetadataStore

logger = logging.getLogger(__name__)

_COMPONENT = "pipeline.query"

NO_RESULTS_ANSWER = "I couldn't find any relevant information in the uploaded documents to answer your question."
NO_CONTEXT_ANSWER = "I found some documents, but they didn't contain readable text context."
CONTEXT_SEPARATOR = "\n---\n"


class QueryPipeline:
    """Answer a natural-language question from the ingested documents.

    Parameters
    ----------
    store:
        Relational metadata store (source resolution and query logs).
    index:
        Vector-index gateway.
    embedder:
        Embedding gateway; must use the same model as ingestion.
    generator:
        Answer generator gateway.
    collection_name:
        Vector-index collection to search.
    top_k:
        Number of nearest chunks used as context.
    """

    def __init__(
        self,
        store: MetadataStore,
        index: VectorIndexBase,
        embedder: EmbeddingGateway,
        generator: AnswerGenerator,
        *,
        collection_name: str = settings.chroma_collection,
        top_k: int = settings.retrieval_top_k,
    ) -> None:
        self._store = store
        self._index = index
        self._embedder = embedder
        self._generator = generator
        self.collection_name = collection_name
        self.top_k = top_k

    def answer(self, query_text: str, tenant_id: str | None = None) -> QueryAnswer:
        """Return the generated answer and the documents it drew on."""
        if not isinstance(query_text, str) or not query_text.strip():
            raise ValidationError("Query text is invalid or empty", context={"component": _COMPONENT})
        try:
            return self._answer(query_text, tenant_id)
        except AppError:
            raise
        except Exception as exc:
            logger.exception("Unexpected error in query pipeline")
            raise AppError(
                "Unexpected error in query pipeline",
                expected=False,
                context={"component": _COMPONENT, "cause": type(exc).__name__},
            ) from exc

    def _answer(self, query_text: str, tenant_id: str | None) -> QueryAnswer:
        query_vector = self._embedder.embed(query_text)
        hits = self._index.search(self.collection_name, query_vector, self.top_k, with_payload=True)
        if not hits:
            return QueryAnswer(answer=NO_RESULTS_ANSWER)

        usable = [h for h in hits if h.text is not None]
        if not usable:
            logger.warning("%d hit(s) for query carried no readable text", len(hits))
            return QueryAnswer(answer=NO_CONTEXT_ANSWER)

        sources = self._resolve_sources(usable)
        context = CONTEXT_SEPARATOR.join(h.text for h in usable)

        started = time.monotonic()
        answer = self._generator.generate(query_text, context)
        elapsed_ms = int((time.monotonic() - started) * 1000)

        self._log_query(
            QueryLogCreate(
                tenant_id=tenant_id,
                query_text=query_text,
                results_count=len(hits),
                model_used=self._generator.model_name,
                response_time_ms=elapsed_ms,
            )
        )
        return QueryAnswer(answer=answer, sources=sources)

    def _resolve_sources(self, hits: list[SearchHit]) -> list[SourceDocument]:
        # Distinct ids in order of first appearance.
        doc_ids: list[int] = []
        for hit in hits:
            if hit.doc_id is not None and hit.doc_id not in doc_ids:
                doc_ids.append(hit.doc_id)

        by_id = {d.doc_id: d for d in self._store.get_documents_by_ids(doc_ids)}
        return [
            SourceDocument(
                id=d.doc_id,
                title=d.title,
                source_type=d.source_type,
                source_path=d.source_path,
            )
            for d in (by_id.get(i) for i in doc_ids)
            if d is not None
        ]

    def _log_query(self, entry: QueryLogCreate) -> None:
        """Best-effort audit write; never raises."""
        try:
            self._store.insert_query_log(entry)
        except Exception as exc:
            err = LoggingError(
                f"Query log write failed: {exc}",
                context={"component": _COMPONENT, "cause": type(exc).__name__},
            )
            logger.warning("Query log error (non-fatal): %s", err.to_dict(), exc_info=exc)
