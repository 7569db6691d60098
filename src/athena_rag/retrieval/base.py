"""Abstract base class for vector-index backends.

Adding a new backend (Qdrant, Pinecone, Weaviate …) only requires
subclassing :class:`VectorIndexBase` and implementing the abstract
hooks.  Input validation, the lazy-creation protocol and error wrapping
live here so every backend enforces the same contract.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from athena_rag.errors import StorageError, ValidationError, wrap_error
from athena_rag.retrieval.models import SearchHit, VectorPoint

logger = logging.getLogger(__name__)

_COMPONENT = "retrieval.vector_index"


class VectorIndexBase(ABC):
    """Backend-agnostic vector-index interface.

    Collections use cosine distance.  A collection's dimensionality is
    fixed by the first upsert and every later write is checked against
    the live collection before anything is sent.
    """

    distance_metric = "cosine"

    # -- public API -----------------------------------------------------------

    def ensure_collection(self, name: str, dimension: int) -> None:
        """Create collection *name* if it does not exist; no-op otherwise."""
        try:
            if not self._collection_exists(name):
                self._create_collection(name, dimension)
                logger.info("Created collection %r (dim=%d, %s)", name, dimension, self.distance_metric)
        except Exception as exc:
            raise wrap_error(exc, StorageError, "Vector index createCollection failed", component=_COMPONENT) from exc

    def upsert(self, name: str, points: Sequence[VectorPoint]) -> None:
        """Insert or overwrite *points* in collection *name*.

        Raises
        ------
        ValidationError
            Empty batch, empty vector, or a vector length that disagrees
            with the batch or with the live collection.
        StorageError
            The backend write failed.
        """
        if not points:
            raise ValidationError("Invalid parameters for vector upsert: no points", context={"component": _COMPONENT})

        dimension = len(points[0].vector)
        for point in points:
            if not point.vector:
                raise ValidationError(
                    f"Point {point.id!r} has an empty vector",
                    context={"component": _COMPONENT},
                )
            if len(point.vector) != dimension:
                raise ValidationError(
                    f"Vector size mismatch within batch: expected {dimension}, got {len(point.vector)}",
                    context={"component": _COMPONENT, "point_id": point.id},
                )

        self.ensure_collection(name, dimension)

        try:
            expected = self.collection_dimension(name)
        except Exception as exc:
            raise wrap_error(exc, StorageError, "Vector index lookup failed", component=_COMPONENT) from exc
        if expected is not None and expected != dimension:
            raise ValidationError(
                f"Vector size mismatch: expected {expected}, got {dimension}",
                context={"component": _COMPONENT, "collection": name},
            )

        try:
            self._upsert(name, points)
        except Exception as exc:
            raise wrap_error(exc, StorageError, "Vector index upsert failed", component=_COMPONENT) from exc
        logger.info("Upserted %d point(s) into %r", len(points), name)

    def search(
        self,
        name: str,
        vector: list[float],
        top_k: int = 5,
        *,
        with_payload: bool = True,
    ) -> list[SearchHit]:
        """Return up to *top_k* hits ordered by descending similarity.

        An empty or absent collection yields an empty list.
        """
        if not vector:
            raise ValidationError("Invalid parameters for vector search: empty vector", context={"component": _COMPONENT})
        if top_k < 1:
            raise ValidationError(f"top_k must be positive, got {top_k}", context={"component": _COMPONENT})
        try:
            hits = self._search(name, vector, top_k, with_payload)
        except Exception as exc:
            raise wrap_error(exc, StorageError, "Vector index search failed", component=_COMPONENT) from exc
        return sorted(hits, key=lambda h: h.score, reverse=True)[:top_k]

    def fetch_payloads(self, name: str, ids: Sequence[str]) -> dict[str, dict[str, Any]]:
        """Look points up by id; ids without a live point are omitted."""
        if not ids:
            return {}
        try:
            return self._fetch_payloads(name, list(ids))
        except Exception as exc:
            raise wrap_error(exc, StorageError, "Vector index lookup failed", component=_COMPONENT) from exc

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def collection_dimension(self, name: str) -> int | None:
        """Dimensionality of collection *name*, or ``None`` when unknown/absent."""
        ...

    @abstractmethod
    def _collection_exists(self, name: str) -> bool: ...

    @abstractmethod
    def _create_collection(self, name: str, dimension: int) -> None: ...

    @abstractmethod
    def _upsert(self, name: str, points: Sequence[VectorPoint]) -> None: ...

    @abstractmethod
    def _search(self, name: str, vector: list[float], top_k: int, with_payload: bool) -> list[SearchHit]: ...

    @abstractmethod
    def _fetch_payloads(self, name: str, ids: list[str]) -> dict[str, dict[str, Any]]: ...

    @abstractmethod
    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...
