"""
Retrieval — the vector-index gateway.

This module wraps the vector store behind a clean interface so that the
pipelines never need to know which DB is backing retrieval.

Public surface
--------------
- :class:`VectorIndexBase` — abstract backend with the shared contract.
- :class:`ChromaVectorIndex` — default Chroma backend.
- :class:`VectorPoint`, :class:`SearchHit` — data models.
- :func:`make_point_id` — deterministic point ids for chunks.
"""

from athena_rag.retrieval.base import VectorIndexBase
from athena_rag.retrieval.models import SearchHit, VectorPoint, make_point_id

__all__ = [
    "ChromaVectorIndex",
    "SearchHit",
    "VectorIndexBase",
    "VectorPoint",
    "make_point_id",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaVectorIndex to avoid pulling in chromadb at import time."""
    if name == "ChromaVectorIndex":
        from athena_rag.retrieval.chroma_store import ChromaVectorIndex

        return ChromaVectorIndex
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
