"""Unit tests for the vector-index gateway — shared contract and Chroma backend."""

from __future__ import annotations

from uuid import uuid4

import chromadb
import pytest

from athena_rag.errors import StorageError, ValidationError
from athena_rag.retrieval.chroma_store import ChromaVectorIndex
from athena_rag.retrieval.models import VectorPoint, make_point_id


def _point(pid: str, vector: list[float], doc_id: int = 1, position: int = 0, text: str = "chunk") -> VectorPoint:
    return VectorPoint(id=pid, vector=vector, payload={"doc_id": doc_id, "text": text, "position": position})


SAMPLE_POINTS = [
    _point("1_0", [1.0, 0.0, 0.0], position=0, text="exact match"),
    _point("1_1", [0.0, 1.0, 0.0], position=1, text="orthogonal"),
    _point("1_2", [0.9, 0.1, 0.0], position=2, text="close match"),
]


def test_make_point_id_is_pure() -> None:
    assert make_point_id(7, 3) == "7_3"
    assert make_point_id(7, 3) == make_point_id(7, 3)
    assert make_point_id(7, 3) != make_point_id(3, 7)


# ── Shared contract (in-memory backend) ─────────────────────────────────


class TestVectorIndexContract:
    def test_upsert_creates_collection_lazily(self, fake_index) -> None:
        assert fake_index.collection_dimension("docs") is None
        fake_index.upsert("docs", SAMPLE_POINTS)
        assert fake_index.collection_dimension("docs") == 3
        assert len(fake_index.points("docs")) == 3

    def test_ensure_collection_is_idempotent(self, fake_index) -> None:
        fake_index.ensure_collection("docs", 3)
        fake_index.upsert("docs", SAMPLE_POINTS[:1])
        fake_index.ensure_collection("docs", 8)
        assert fake_index.collection_dimension("docs") == 3
        assert len(fake_index.points("docs")) == 1

    def test_upsert_rejects_empty_batch(self, fake_index) -> None:
        with pytest.raises(ValidationError, match="no points"):
            fake_index.upsert("docs", [])

    def test_upsert_rejects_empty_vector(self, fake_index) -> None:
        with pytest.raises(ValidationError, match="empty vector"):
            fake_index.upsert("docs", [_point("1_0", [])])
        assert "docs" not in fake_index.collections

    def test_upsert_rejects_mixed_lengths_in_batch(self, fake_index) -> None:
        with pytest.raises(ValidationError, match="within batch"):
            fake_index.upsert("docs", [_point("1_0", [1.0, 0.0]), _point("1_1", [1.0, 0.0, 0.0])])

    def test_upsert_checks_live_collection_dimension(self, fake_index) -> None:
        fake_index.upsert("docs", SAMPLE_POINTS)
        with pytest.raises(ValidationError, match="expected 3, got 4"):
            fake_index.upsert("docs", [_point("2_0", [1.0, 0.0, 0.0, 0.0], doc_id=2)])
        assert "2_0" not in fake_index.points("docs")

    def test_upsert_overwrites_same_id(self, fake_index) -> None:
        fake_index.upsert("docs", [_point("1_0", [1.0, 0.0, 0.0], text="old")])
        fake_index.upsert("docs", [_point("1_0", [0.0, 1.0, 0.0], text="new")])
        assert fake_index.fetch_payloads("docs", ["1_0"])["1_0"]["text"] == "new"

    def test_backend_failure_is_storage_error(self, fake_index) -> None:
        fake_index.fail_upsert = RuntimeError("connection refused")
        with pytest.raises(StorageError, match="upsert failed") as exc_info:
            fake_index.upsert("docs", SAMPLE_POINTS)
        assert exc_info.value.expected is False

    def test_search_orders_by_descending_similarity(self, fake_index) -> None:
        fake_index.upsert("docs", SAMPLE_POINTS)
        hits = fake_index.search("docs", [1.0, 0.0, 0.0], top_k=3)
        assert [h.id for h in hits] == ["1_0", "1_2", "1_1"]
        assert hits[0].text == "exact match"

    def test_search_respects_top_k_and_small_collections(self, fake_index) -> None:
        fake_index.upsert("docs", SAMPLE_POINTS)
        assert len(fake_index.search("docs", [1.0, 0.0, 0.0], top_k=2)) == 2
        assert len(fake_index.search("docs", [1.0, 0.0, 0.0], top_k=10)) == 3

    def test_search_without_payload(self, fake_index) -> None:
        fake_index.upsert("docs", SAMPLE_POINTS)
        hits = fake_index.search("docs", [1.0, 0.0, 0.0], top_k=1, with_payload=False)
        assert hits[0].payload == {}

    def test_search_absent_collection_is_empty(self, fake_index) -> None:
        assert fake_index.search("missing", [1.0, 0.0, 0.0]) == []

    def test_search_rejects_bad_arguments(self, fake_index) -> None:
        with pytest.raises(ValidationError):
            fake_index.search("docs", [])
        with pytest.raises(ValidationError):
            fake_index.search("docs", [1.0], top_k=0)

    def test_fetch_payloads_omits_missing_ids(self, fake_index) -> None:
        fake_index.upsert("docs", SAMPLE_POINTS)
        found = fake_index.fetch_payloads("docs", ["1_0", "9_9"])
        assert set(found) == {"1_0"}
        assert fake_index.fetch_payloads("docs", []) == {}


# ── Chroma backend (in-process client) ──────────────────────────────────


@pytest.fixture(scope="module")
def chroma_client():
    return chromadb.EphemeralClient()


@pytest.fixture()
def chroma_index(chroma_client) -> ChromaVectorIndex:
    return ChromaVectorIndex(client=chroma_client)


@pytest.fixture()
def collection_name(chroma_client) -> str:
    name = f"test-{uuid4().hex[:12]}"
    yield name
    try:
        chroma_client.delete_collection(name)
    except Exception:
        pass


class TestChromaVectorIndex:
    def test_upsert_then_search(self, chroma_index: ChromaVectorIndex, collection_name: str) -> None:
        chroma_index.upsert(collection_name, SAMPLE_POINTS)
        hits = chroma_index.search(collection_name, [1.0, 0.0, 0.0], top_k=3)

        assert [h.id for h in hits] == ["1_0", "1_2", "1_1"]
        assert hits[0].score == pytest.approx(1.0, abs=1e-4)
        assert hits[0].payload == {"doc_id": 1, "position": 0, "text": "exact match"}

    def test_dimension_recorded_and_enforced(self, chroma_index: ChromaVectorIndex, collection_name: str) -> None:
        chroma_index.upsert(collection_name, SAMPLE_POINTS)
        assert chroma_index.collection_dimension(collection_name) == 3
        with pytest.raises(ValidationError, match="Vector size mismatch"):
            chroma_index.upsert(collection_name, [_point("2_0", [1.0, 0.0], doc_id=2)])

    def test_absent_collection(self, chroma_index: ChromaVectorIndex, collection_name: str) -> None:
        assert chroma_index.collection_dimension(collection_name) is None
        assert chroma_index.search(collection_name, [1.0, 0.0, 0.0]) == []
        assert chroma_index.fetch_payloads(collection_name, ["1_0"]) == {}

    def test_empty_collection_search(self, chroma_index: ChromaVectorIndex, collection_name: str) -> None:
        chroma_index.ensure_collection(collection_name, 3)
        assert chroma_index.search(collection_name, [1.0, 0.0, 0.0]) == []

    def test_fetch_payloads_round_trip(self, chroma_index: ChromaVectorIndex, collection_name: str) -> None:
        chroma_index.upsert(collection_name, SAMPLE_POINTS)
        found = chroma_index.fetch_payloads(collection_name, ["1_2", "5_5"])
        assert found == {"1_2": {"doc_id": 1, "position": 2, "text": "close match"}}

    def test_health_check(self, chroma_index: ChromaVectorIndex) -> None:
        assert chroma_index.health_check() is True
