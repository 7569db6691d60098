"""Chroma implementation of the vector-index abstraction."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import chromadb
from chromadb.errors import NotFoundError

from athena_rag.config import settings
from athena_rag.retrieval.base import VectorIndexBase
from athena_rag.retrieval.models import SearchHit, VectorPoint

if TYPE_CHECKING:
    from chromadb.api import ClientAPI
    from chromadb.api.models.Collection import Collection

logger = logging.getLogger(__name__)

# Collection metadata key recording the fixed dimensionality.
DIMENSION_KEY = "dimension"


def _flatten_payload(payload: dict[str, Any]) -> dict[str, Any]:
    """Chroma metadata values must be flat str/int/float/bool."""
    return {
        k: v
        for k, v in payload.items()
        if k != "text" and isinstance(v, (str, int, float, bool))
    }


class ChromaVectorIndex(VectorIndexBase):
    """Chroma-backed vector index.

    Chunk text is stored as the Chroma *document*; the remaining scalar
    payload fields are stored as Chroma metadata and merged back into the
    payload on read.

    Parameters
    ----------
    client:
        Pre-built Chroma client (e.g. ``chromadb.EphemeralClient()`` in
        tests).  When *None*, an ``HttpClient`` is created.
    host:
        Chroma server hostname.
    port:
        Chroma server port.
    upsert_batch_size:
        Max records per upsert call.
    """

    def __init__(
        self,
        client: ClientAPI | None = None,
        *,
        host: str = settings.chroma_host,
        port: int = settings.chroma_port,
        upsert_batch_size: int = 5000,
    ) -> None:
        self._client = client if client is not None else chromadb.HttpClient(host=host, port=port)
        self.upsert_batch_size = upsert_batch_size

    def _get_collection(self, name: str) -> Collection | None:
        try:
            return self._client.get_collection(name)
        except NotFoundError:
            return None

    # -- VectorIndexBase overrides --------------------------------------------

    def collection_dimension(self, name: str) -> int | None:
        collection = self._get_collection(name)
        if collection is None:
            return None
        meta = collection.metadata or {}
        if DIMENSION_KEY in meta:
            return int(meta[DIMENSION_KEY])
        # Collection created outside this gateway: infer from a stored point.
        embeddings = collection.peek(limit=1).get("embeddings")
        if embeddings is not None and len(embeddings) > 0:
            return len(embeddings[0])
        return None

    def _collection_exists(self, name: str) -> bool:
        return self._get_collection(name) is not None

    def _create_collection(self, name: str, dimension: int) -> None:
        self._client.get_or_create_collection(
            name=name,
            metadata={"hnsw:space": self.distance_metric, DIMENSION_KEY: dimension},
        )

    def _upsert(self, name: str, points: Sequence[VectorPoint]) -> None:
        collection = self._client.get_collection(name)
        for start in range(0, len(points), self.upsert_batch_size):
            batch = points[start : start + self.upsert_batch_size]
            collection.upsert(
                ids=[p.id for p in batch],
                embeddings=[p.vector for p in batch],
                documents=[str(p.payload.get("text", "")) for p in batch],
                metadatas=[_flatten_payload(p.payload) for p in batch],
            )
            logger.debug("  upserted batch %d-%d into %r", start, start + len(batch), name)

    def _search(self, name: str, vector: list[float], top_k: int, with_payload: bool) -> list[SearchHit]:
        collection = self._get_collection(name)
        if collection is None:
            return []
        count = collection.count()
        if count == 0:
            return []

        results = collection.query(
            query_embeddings=[vector],
            n_results=min(top_k, count),
            include=["documents", "metadatas", "distances"],
        )

        ids = results.get("ids", [[]])[0]
        docs = (results.get("documents") or [[]])[0]
        metas = (results.get("metadatas") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]

        hits: list[SearchHit] = []
        for point_id, content, meta, dist in zip(ids, docs, metas, distances):
            payload: dict[str, Any] = {}
            if with_payload:
                payload = {**(meta or {}), "text": content}
            # Cosine distance -> cosine similarity.
            hits.append(SearchHit(id=point_id, score=1.0 - float(dist), payload=payload))
        return hits

    def _fetch_payloads(self, name: str, ids: list[str]) -> dict[str, dict[str, Any]]:
        collection = self._get_collection(name)
        if collection is None:
            return {}
        results = collection.get(ids=ids, include=["documents", "metadatas"])
        docs = results.get("documents") or [None] * len(results["ids"])
        metas = results.get("metadatas") or [None] * len(results["ids"])
        return {
            point_id: {**(meta or {}), "text": content}
            for point_id, content, meta in zip(results["ids"], docs, metas)
        }

    def health_check(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False
