"""Domain models for vector-index points and search hits."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


def make_point_id(document_id: int, position: int) -> str:
    """Deterministic vector-index id for the chunk at *position* of *document_id*."""
    return f"{document_id}_{position}"


class VectorPoint(BaseModel):
    """A (vector, payload) pair stored in the vector index.

    Attributes
    ----------
    id:
        Globally unique point identifier (see :func:`make_point_id`).
    vector:
        Dense embedding.
    payload:
        At minimum ``doc_id``, ``text`` and ``position``.
    """

    id: str
    vector: list[float]
    payload: dict[str, Any] = Field(default_factory=dict)


class SearchHit(BaseModel):
    """A single nearest-neighbour result."""

    id: str
    score: float
    payload: dict[str, Any] = Field(default_factory=dict)

    @property
    def text(self) -> str | None:
        """Chunk text carried in the payload, if usable."""
        text = self.payload.get("text")
        if isinstance(text, str) and text.strip():
            return text
        return None

    @property
    def doc_id(self) -> Any:
        return self.payload.get("doc_id")
