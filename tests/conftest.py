"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pytest
from langchain_core.embeddings import DeterministicFakeEmbedding
from langchain_core.language_models.fake_chat_models import FakeListChatModel
from sqlalchemy import Engine

from athena_rag.generation.generator import AnswerGenerator
from athena_rag.ingestion.embedder import EmbeddingGateway
from athena_rag.pipeline.ingest import IngestionPipeline
from athena_rag.pipeline.query import QueryPipeline
from athena_rag.retrieval.base import VectorIndexBase
from athena_rag.retrieval.models import SearchHit, VectorPoint
from athena_rag.storage.database import get_engine
from athena_rag.storage.store import MetadataStore

COLLECTION = "test_docs"
FAKE_ANSWER = "The warranty lasts two years."


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── In-memory vector index ─────────────────────────────────────────────


def _cosine(a: Sequence[float], b: Sequence[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


class InMemoryVectorIndex(VectorIndexBase):
    """Exact cosine search over a dict; set ``fail_upsert`` to simulate outages."""

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, Any]] = {}
        self.fail_upsert: Exception | None = None

    def collection_dimension(self, name: str) -> int | None:
        collection = self.collections.get(name)
        return collection["dimension"] if collection else None

    def _collection_exists(self, name: str) -> bool:
        return name in self.collections

    def _create_collection(self, name: str, dimension: int) -> None:
        self.collections[name] = {"dimension": dimension, "points": {}}

    def _upsert(self, name: str, points: Sequence[VectorPoint]) -> None:
        if self.fail_upsert is not None:
            raise self.fail_upsert
        for point in points:
            self.collections[name]["points"][point.id] = point.model_copy(deep=True)

    def _search(self, name: str, vector: list[float], top_k: int, with_payload: bool) -> list[SearchHit]:
        collection = self.collections.get(name)
        if collection is None:
            return []
        return [
            SearchHit(id=p.id, score=_cosine(vector, p.vector), payload=dict(p.payload) if with_payload else {})
            for p in collection["points"].values()
        ]

    def _fetch_payloads(self, name: str, ids: list[str]) -> dict[str, dict[str, Any]]:
        points = self.collections.get(name, {}).get("points", {})
        return {i: dict(points[i].payload) for i in ids if i in points}

    def health_check(self) -> bool:
        return True

    def points(self, name: str = COLLECTION) -> dict[str, VectorPoint]:
        return self.collections.get(name, {}).get("points", {})


# ── Fixtures ────────────────────────────────────────────────────────────


@pytest.fixture()
def db_engine(tmp_path: Path) -> Engine:
    engine = get_engine(f"sqlite:///{tmp_path / 'athena.db'}")
    yield engine
    engine.dispose()


@pytest.fixture()
def metadata_store(db_engine: Engine) -> MetadataStore:
    store = MetadataStore(db_engine)
    store.create_schema()
    return store


@pytest.fixture()
def fake_index() -> InMemoryVectorIndex:
    return InMemoryVectorIndex()


@pytest.fixture()
def embedder() -> EmbeddingGateway:
    return EmbeddingGateway(DeterministicFakeEmbedding(size=32), batch_size=8)


@pytest.fixture()
def generator() -> AnswerGenerator:
    return AnswerGenerator(FakeListChatModel(responses=[FAKE_ANSWER]), model_name="fake-llm")


@pytest.fixture()
def ingestion(metadata_store: MetadataStore, fake_index: InMemoryVectorIndex, embedder: EmbeddingGateway) -> IngestionPipeline:
    return IngestionPipeline(
        metadata_store,
        fake_index,
        embedder,
        collection_name=COLLECTION,
        chunk_size=200,
        chunk_overlap=20,
        retry_backoff=0,
    )


@pytest.fixture()
def query_pipeline(
    metadata_store: MetadataStore,
    fake_index: InMemoryVectorIndex,
    embedder: EmbeddingGateway,
    generator: AnswerGenerator,
) -> QueryPipeline:
    return QueryPipeline(metadata_store, fake_index, embedder, generator, collection_name=COLLECTION, top_k=5)


@pytest.fixture()
def write_file(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write *content* to ``tmp_path / name`` and return the path."""

    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write
