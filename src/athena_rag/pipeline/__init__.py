"""
Pipeline — the ingestion and query orchestrators.

Public API
----------
- :class:`IngestionPipeline` — load → chunk → embed → relational rows → vectors.
- :class:`QueryPipeline` — embed → search → resolve → generate → log.
- :func:`build_services` / :func:`assemble_services` — dependency wiring.
"""

from athena_rag.pipeline.factory import RAGServices, assemble_services, build_services
from athena_rag.pipeline.ingest import IngestionPipeline
from athena_rag.pipeline.models import IngestRequest, IngestResult, QueryAnswer, SourceDocument, SourceFile
from athena_rag.pipeline.query import QueryPipeline

__all__ = [
    "IngestRequest",
    "IngestResult",
    "IngestionPipeline",
    "QueryAnswer",
    "QueryPipeline",
    "RAGServices",
    "SourceDocument",
    "SourceFile",
    "assemble_services",
    "build_services",
]
