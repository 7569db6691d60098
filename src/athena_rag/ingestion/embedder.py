"""Embedding gateway shared by the ingestion and query paths."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import openai
from langchain_huggingface import HuggingFaceEmbeddings

from athena_rag.config import settings
from athena_rag.errors import EmbeddingError, ValidationError

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)

_COMPONENT = "ingestion.embedder"

# Upstream failures a caller may retry.
TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    TimeoutError,
    ConnectionError,
    openai.RateLimitError,
    openai.APITimeoutError,
    openai.APIConnectionError,
    openai.InternalServerError,
)


def get_embedding_function(model_name: str = settings.embedding_model) -> HuggingFaceEmbeddings:
    """Return the configured sentence-transformer embedding function."""
    return HuggingFaceEmbeddings(
        model_name=model_name,
        encode_kwargs={"normalize_embeddings": True},
    )


class EmbeddingGateway:
    """Validate inputs and outputs around a LangChain :class:`Embeddings`.

    Parameters
    ----------
    embeddings:
        Any LangChain embedding model.
    batch_size:
        Maximum number of texts sent per ``embed_documents`` call.
    """

    def __init__(self, embeddings: Embeddings, *, batch_size: int = settings.embedding_batch_size) -> None:
        self._embeddings = embeddings
        self.batch_size = batch_size
        self._dimension: int | None = None

    @property
    def dimension(self) -> int | None:
        """Dimensionality observed so far (``None`` before the first call)."""
        return self._dimension

    def embed(self, text: str) -> list[float]:
        """Embed a single query text."""
        _require_text(text)
        try:
            vector = self._embeddings.embed_query(text)
        except Exception as exc:
            raise _upstream_error(exc) from exc
        return self._check_vector(vector)

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed *texts*, returning one vector per text in input order."""
        if not texts:
            return []
        for text in texts:
            _require_text(text)

        vectors: list[list[float]] = []
        for start in range(0, len(texts), self.batch_size):
            batch = texts[start : start + self.batch_size]
            try:
                vectors.extend(self._embeddings.embed_documents(batch))
            except Exception as exc:
                raise _upstream_error(exc) from exc
            logger.debug("  embedded %d / %d", len(vectors), len(texts))

        if len(vectors) != len(texts):
            raise EmbeddingError(
                f"Embedding count mismatch: expected {len(texts)}, got {len(vectors)}",
                context={"component": _COMPONENT},
            )
        return [self._check_vector(v) for v in vectors]

    def _check_vector(self, vector: list[float]) -> list[float]:
        vector = [float(x) for x in vector]
        if not vector:
            raise EmbeddingError("Received empty embedding vector", context={"component": _COMPONENT})
        if self._dimension is None:
            self._dimension = len(vector)
        elif len(vector) != self._dimension:
            raise EmbeddingError(
                f"Embedding dimension changed: expected {self._dimension}, got {len(vector)}",
                context={"component": _COMPONENT},
            )
        return vector


def _require_text(text: str) -> None:
    if not isinstance(text, str) or not text.strip():
        raise ValidationError("Invalid input for embedding: text is required", context={"component": _COMPONENT})


def _upstream_error(exc: Exception) -> EmbeddingError:
    if isinstance(exc, EmbeddingError):
        return exc
    transient = isinstance(exc, TRANSIENT_ERRORS)
    logger.warning("Embedding call failed (transient=%s): %s", transient, exc)
    return EmbeddingError(
        f"Failed to generate embedding: {exc}",
        transient=transient,
        expected=transient,
        context={"component": _COMPONENT, "cause": type(exc).__name__},
    )
