"""
HTTP API Tests

Each test builds an AppContext around FakeModelRuntime and an in-memory
document backend, then drives the app through TestClient (lifespan enabled).
"""

from __future__ import annotations

import json
from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from semantic_ranker.context import AppContext, build_context
from semantic_ranker.main import create_app
from semantic_ranker.models.fakes import FakeModelRuntime
from semantic_ranker.storage.document_store import InMemoryKeyValueStore

KEY = "embedding_documents"


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore({KEY: json.dumps(["Mars is red.", "Jupiter is big."])})


@pytest.fixture
def context(settings, fake_runtime, kv_store) -> AppContext:
    return build_context(settings, runtime=fake_runtime, kv_store=kv_store)


@pytest.fixture
def client(context) -> Iterator[TestClient]:
    with TestClient(create_app(context=context)) as test_client:
        yield test_client


@pytest.fixture
def ready_client(client) -> TestClient:
    response = client.post("/api/v1/model/initialize")
    assert response.status_code == 200
    return client


# =============================================================================
# Health / Readiness
# =============================================================================


class TestHealth:
    def test_health_returns_200(self, client) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["service"] == "semantic-ranker"

    def test_ready_is_503_before_model_loads(self, client) -> None:
        response = client.get("/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"

    def test_ready_is_200_after_initialize(self, ready_client) -> None:
        response = ready_client.get("/ready")

        assert response.status_code == 200
        assert response.json()["checks"]["model_loaded"] is True

    def test_root(self, client) -> None:
        assert client.get("/").json()["docs"] == "/docs"


# =============================================================================
# Model Lifecycle
# =============================================================================


class TestModelEndpoints:
    def test_state_defaults(self, client) -> None:
        data = client.get("/api/v1/model/state").json()

        assert data["is_loading"] is False
        assert data["is_initialized"] is False
        assert data["error"] is None
        assert data["active_option"] is None

    def test_initialize_reports_active_option(self, client) -> None:
        data = client.post("/api/v1/model/initialize").json()

        assert data["is_initialized"] is True
        assert data["active_option"] == "q8/cpu"

    def test_initialize_twice_loads_once(self, client, fake_runtime) -> None:
        client.post("/api/v1/model/initialize")
        client.post("/api/v1/model/initialize")

        assert fake_runtime.tokenizer_loads == 1

    def test_initialize_failure_is_503_and_sets_error(self, client, fake_runtime) -> None:
        fake_runtime.working_options = set()

        response = client.post("/api/v1/model/initialize")

        assert response.status_code == 503
        state = client.get("/api/v1/model/state").json()
        assert state["is_initialized"] is False
        assert "unsupported" in state["error"]

    def test_reset(self, ready_client) -> None:
        data = ready_client.post("/api/v1/model/reset").json()

        assert data["is_initialized"] is False
        assert data["error"] is None
        assert ready_client.get("/ready").status_code == 503


# =============================================================================
# Documents
# =============================================================================


class TestDocumentEndpoints:
    def test_list(self, client) -> None:
        data = client.get("/api/v1/documents").json()

        assert data == {"documents": ["Mars is red.", "Jupiter is big."], "count": 2}

    def test_add_persists(self, client, kv_store) -> None:
        response = client.post("/api/v1/documents", json={"text": "Saturn has rings."})

        assert response.status_code == 201
        assert response.json()["count"] == 3
        assert json.loads(kv_store.get_item(KEY) or "")[-1] == "Saturn has rings."

    def test_add_blank_is_422(self, client) -> None:
        assert client.post("/api/v1/documents", json={"text": "  "}).status_code == 422

    def test_add_missing_text_is_422(self, client) -> None:
        assert client.post("/api/v1/documents", json={}).status_code == 422

    def test_remove(self, client, kv_store) -> None:
        response = client.delete("/api/v1/documents/0")

        assert response.status_code == 200
        assert response.json()["documents"] == ["Jupiter is big."]
        assert json.loads(kv_store.get_item(KEY) or "") == ["Jupiter is big."]

    def test_remove_unknown_index_is_404(self, client) -> None:
        assert client.delete("/api/v1/documents/9").status_code == 404

    def test_write_failure_is_503_and_list_is_unchanged(
        self, client, kv_store, monkeypatch
    ) -> None:
        def disk_full(key: str, value: str) -> None:
            raise OSError(28, "No space left on device")

        monkeypatch.setattr(kv_store, "set_item", disk_full)

        added = client.post("/api/v1/documents", json={"text": "Saturn has rings."})
        removed = client.delete("/api/v1/documents/0")

        assert added.status_code == 503
        assert "Could not persist documents" in added.json()["detail"]
        assert removed.status_code == 503
        assert client.get("/api/v1/documents").json()["documents"] == [
            "Mars is red.",
            "Jupiter is big.",
        ]


# =============================================================================
# Ranking / Results
# =============================================================================


class TestRankEndpoints:
    def test_rank_before_ready_is_409(self, client) -> None:
        response = client.post("/api/v1/rank", json={"query": "What planet is red?"})

        assert response.status_code == 409

    def test_rank_stored_documents(self, ready_client) -> None:
        response = ready_client.post("/api/v1/rank", json={"query": "What planet is red?"})

        assert response.status_code == 200
        data = response.json()
        assert data["query"] == "What planet is red?"
        assert len(data["similarities"]) == 2
        assert data["ranking"][0]["text"] == "Mars is red."
        assert data["ranking"][0]["score"] >= data["ranking"][1]["score"]
        assert data["processing_time_ms"] >= 0

    def test_rank_explicit_documents(self, ready_client) -> None:
        response = ready_client.post(
            "/api/v1/rank",
            json={"query": "rings", "documents": ["Saturn has rings.", "Mars is red."]},
        )

        assert response.json()["ranking"][0]["index"] == 0

    def test_rank_empty_documents(self, ready_client) -> None:
        response = ready_client.post("/api/v1/rank", json={"query": "q", "documents": []})

        assert response.status_code == 200
        assert response.json()["ranking"] == []

    def test_rank_requires_query(self, ready_client) -> None:
        assert ready_client.post("/api/v1/rank", json={}).status_code == 422

    def test_inference_failure_is_502_and_model_stays_ready(
        self, settings, kv_store
    ) -> None:
        runtime = FakeModelRuntime(inference_failures=100)
        context = build_context(settings, runtime=runtime, kv_store=kv_store)
        with TestClient(create_app(context=context)) as client:
            client.post("/api/v1/model/initialize")

            response = client.post("/api/v1/rank", json={"query": "q"})

            assert response.status_code == 502
            assert client.get("/ready").status_code == 200

    def test_results_lifecycle(self, ready_client) -> None:
        assert ready_client.get("/api/v1/results").status_code == 404

        ready_client.post("/api/v1/rank", json={"query": "What planet is red?"})
        held = ready_client.get("/api/v1/results")
        assert held.status_code == 200
        assert held.json()["ranking"][0]["text"] == "Mars is red."

        assert ready_client.delete("/api/v1/results").status_code == 204
        assert ready_client.get("/api/v1/results").status_code == 404

    def test_reset_makes_rank_fail(self, ready_client) -> None:
        ready_client.post("/api/v1/model/reset")

        assert ready_client.post("/api/v1/rank", json={"query": "q"}).status_code == 409
