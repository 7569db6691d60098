"""
Storage — relational persistence of documents, chunks and query logs.

The vector side of the dual write lives in :mod:`athena_rag.retrieval`.
"""

from athena_rag.storage.schemas import (
    ChunkCreate,
    DocumentCreate,
    QueryLogCreate,
    StoredChunk,
    StoredDocument,
)
from athena_rag.storage.store import MetadataStore

__all__ = [
    "ChunkCreate",
    "DocumentCreate",
    "MetadataStore",
    "QueryLogCreate",
    "StoredChunk",
    "StoredDocument",
]
