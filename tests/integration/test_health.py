"""Integration tests for the /health endpoint."""

import pytest

from modules.core import views

pytestmark = pytest.mark.integration


class TestHealthCheck:
    def test_reports_every_probe(self, client):
        response = client.get("/health")

        data = response.json()
        assert response.status_code == 200
        assert set(data["services"]) == {"database", "cache"}
        assert all(s["status"] == "up" for s in data["services"].values())

    def test_failing_probe_returns_503(self, client, monkeypatch):
        def broken_cache():
            raise ConnectionError("redis is down")

        monkeypatch.setitem(views._PROBES, "cache", broken_cache)

        response = client.get("/health")

        data = response.json()
        assert response.status_code == 503
        assert data["status"] == "unhealthy"
        assert data["services"]["cache"] == {"status": "down"}
        assert data["services"]["database"]["status"] == "up"
