"""Tests for the FastAPI application."""

import pytest
from fastapi.testclient import TestClient

from swift_patterns.api.main import create_app


@pytest.fixture
def client(engine):
    with TestClient(create_app(engine)) as test_client:
        yield test_client


class TestSearchEndpoint:
    def test_search(self, client) -> None:
        response = client.post("/api/v1/search", json={"query": "swiftui"})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["results"][0]["id"] == "alpha-a2"
        assert data["sources"] == ["alpha", "beta"]
        assert data["semantic_recall"]["status"] == "inactive"
        assert data["cached"] is False
        assert "query_time_ms" in data

    def test_repeat_search_is_cached(self, client) -> None:
        client.post("/api/v1/search", json={"query": "swiftui"})
        response = client.post("/api/v1/search", json={"query": "SwiftUI"})
        assert response.json()["cached"] is True

    def test_limit_truncates_results_not_total(self, client) -> None:
        response = client.post("/api/v1/search", json={"query": "async actor testing swiftui", "limit": 1})

        data = response.json()
        assert len(data["results"]) == 1
        assert data["total"] > 1

    def test_blank_query(self, client) -> None:
        response = client.post("/api/v1/search", json={"query": "   "})

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "INVALID_QUERY"
        assert body["details"] is None
        assert "detail" not in body

    def test_missing_query_is_validation_error(self, client) -> None:
        assert client.post("/api/v1/search", json={}).status_code == 422


class TestPatternsEndpoint:
    def test_patterns(self, client) -> None:
        response = client.get("/api/v1/patterns", params={"topic": "async", "min_quality": 0})

        assert response.status_code == 200
        assert response.json()["results"][0]["id"] == "alpha-a1"

    def test_unknown_source(self, client) -> None:
        response = client.get("/api/v1/patterns", params={"topic": "async", "source": "nope"})

        assert response.status_code == 404
        body = response.json()
        assert set(body) == {"error", "code", "details"}
        assert body["code"] == "UNKNOWN_SOURCE"
        assert body["details"] == {"source": "nope"}

    def test_min_quality_out_of_range(self, client) -> None:
        response = client.get("/api/v1/patterns", params={"topic": "async", "min_quality": 101})
        assert response.status_code == 422


class TestSourceEndpoints:
    def test_list_sources(self, client) -> None:
        data = client.get("/api/v1/sources").json()

        assert data["total"] == 3
        assert [s["id"] for s in data["sources"]] == ["alpha", "beta", "premium"]

    def test_enable_unconfigured_source(self, client) -> None:
        response = client.post("/api/v1/sources/premium/enable")

        assert response.status_code == 409
        assert response.json()["code"] == "SOURCE_NOT_CONFIGURED"
        assert response.json()["details"] == {"source": "premium"}

    def test_enable_unknown_source(self, client) -> None:
        assert client.post("/api/v1/sources/nope/enable").status_code == 404
        assert client.post("/api/v1/sources/nope/disable").status_code == 404

    def test_disable_then_enable(self, client) -> None:
        response = client.post("/api/v1/sources/beta/disable")
        assert response.json() == {"id": "beta", "name": "Beta Blog", "enabled": False}

        search = client.post("/api/v1/search", json={"query": "testing"}).json()
        assert search["sources"] == ["alpha"]

        assert client.post("/api/v1/sources/beta/enable").json()["enabled"] is True


class TestHealth:
    def test_healthy(self, client) -> None:
        data = client.get("/api/v1/health").json()

        assert data["status"] == "healthy"
        assert data["sources_enabled"] == 2
        assert data["semantic_recall_enabled"] is False
        assert set(data["cache"]) == {"feed", "article", "intent"}

    def test_degraded_without_sources(self, client) -> None:
        client.post("/api/v1/sources/alpha/disable")
        client.post("/api/v1/sources/beta/disable")

        assert client.get("/api/v1/health").json()["status"] == "degraded"

    def test_root(self, client) -> None:
        assert client.get("/").json()["endpoints"]["search"] == "/api/v1/search"

    def test_engine_not_started(self, engine) -> None:
        # Without the context manager the lifespan never runs
        response = TestClient(create_app(engine)).get("/api/v1/health")

        assert response.status_code == 503
        assert response.json() == {
            "error": "Search engine not initialized",
            "code": "ENGINE_UNAVAILABLE",
            "details": None,
        }
