"""
Catalog API Tests

Uses FastAPI TestClient against a repository loaded with the sample export.

Run with:
    pytest tests/test_api.py -v
"""

import pytest
from fastapi.testclient import TestClient

from controlm_analysis.api import create_app


@pytest.fixture
def client(repository):
    return TestClient(create_app(repository))


@pytest.fixture
def secured_client(repository):
    return TestClient(create_app(repository, api_token="s3cret"))


class TestPublicRoutes:
    """Routes without authentication."""

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"success": True, "data": {"status": "ok"}, "error": None}


class TestJobRoutes:
    """Search, export, detail and graph routes."""

    def test_search(self, client):
        response = client.post("/api/jobs/search", json={"application": "HR", "per_page": 2})
        body = response.json()

        assert response.status_code == 200
        assert body["success"] is True
        assert body["data"]["total"] == 3
        assert body["data"]["total_pages"] == 2
        assert [j["job_name"] for j in body["data"]["jobs"]] == ["PAY_EXTRACT", "PAY_LOAD"]

    def test_search_validation_error(self, client):
        response = client.post("/api/jobs/search", json={"page": 0})
        assert response.status_code == 422
        assert response.json()["success"] is False

    def test_export(self, client):
        response = client.post("/api/jobs/export", json={"critical": True})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        lines = response.text.strip().splitlines()
        assert lines[0].startswith("job_name,folder_name")
        assert len(lines) == 2

    def test_detail(self, client, job_ids):
        response = client.get(f"/api/jobs/{job_ids['PAY_LOAD']}")
        body = response.json()

        assert response.status_code == 200
        assert body["data"]["job"]["job_name"] == "PAY_LOAD"
        assert len(body["data"]["on_conditions"][0]["actions"]) == 2

    def test_detail_not_found(self, client):
        response = client.get("/api/jobs/99999")
        assert response.status_code == 404
        assert response.json() == {"success": False, "data": None, "error": "Job 99999 not found"}

    def test_graph(self, client, job_ids):
        response = client.get(f"/api/jobs/{job_ids['PAY_LOAD']}/graph")
        graph = response.json()["data"]

        assert graph["job_name"] == "PAY_LOAD"
        assert len(graph["nodes"]) == 3
        assert len(graph["edges"]) == 2

    def test_graph_end_to_end(self, client, job_ids):
        response = client.get(f"/api/jobs/{job_ids['PAY_REPORT']}/graph/end-to-end")
        labels = {n["label"] for n in response.json()["data"]["nodes"]}
        assert labels == {"PAY_REPORT", "PAY_LOAD", "PAY_EXTRACT"}

    def test_graph_not_found(self, client):
        assert client.get("/api/jobs/99999/graph").status_code == 404
        assert client.get("/api/jobs/99999/graph/end-to-end").status_code == 404


class TestCatalogRoutes:
    """Dashboard and filter routes."""

    def test_dashboard(self, client):
        data = client.get("/api/dashboard/stats").json()["data"]
        assert data["total_jobs"] == 4
        assert data["critical_jobs"] == 1

    def test_filters(self, client):
        data = client.get("/api/filters").json()["data"]
        assert data["applications"] == ["FIN", "HR"]


class TestAuthentication:
    """Bearer token checks."""

    def test_health_is_public(self, secured_client):
        assert secured_client.get("/api/health").status_code == 200

    def test_missing_token(self, secured_client):
        response = secured_client.get("/api/dashboard/stats")
        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_wrong_token(self, secured_client):
        response = secured_client.get("/api/filters", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_valid_token(self, secured_client):
        response = secured_client.get("/api/filters", headers={"Authorization": "Bearer s3cret"})
        assert response.status_code == 200
