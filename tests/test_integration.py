"""
Integration tests for the HTTP API.

Tests the complete report flow against an in-memory store.
"""

import json

import pytest
from fastapi.testclient import TestClient

from adapters.json_store import JsonFileReportStore
from main import app
from routes.reports import get_report_store
from conftest import SURVEY, TENANT


# Test client
client = TestClient(app)

HEADERS = {"X-Tenant-Id": TENANT}


@pytest.fixture
def api(blindspot_builder):
    """Serve the blindspot example: self Excellent, three peers Good."""
    builder = blindspot_builder
    builder.rater("sub-1", "Peer")
    app.dependency_overrides[get_report_store] = lambda: builder.store
    yield client
    app.dependency_overrides.clear()


def subject_url(path):
    return f"/reports/surveys/{SURVEY}/subjects/sub-1/{path}"


class TestHealthEndpoint:
    """Tests for health endpoint."""

    def test_health_returns_ok(self):
        """Health endpoint should return healthy status."""
        response = client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "1.0.0"
        assert data["services"]["report_store"] in ("json", "memory")

    def test_health_reports_document_cache(self, tmp_path):
        """The document cache appears once a tenant file has been parsed."""
        before = client.get("/health").json()["services"]["document_cache"]
        assert before.get("size", 0) == 0

        (tmp_path / f"{TENANT}.json").write_text(json.dumps({"subjects": [{"id": "sub-1"}]}), encoding="utf-8")
        JsonFileReportStore(str(tmp_path)).list_subjects(TENANT)

        cache = client.get("/health").json()["services"]["document_cache"]
        assert cache["exists"] is True
        assert cache["size"] == 1
        assert cache["maxsize"] > 0


class TestTenantHeader:
    """Tests for tenant scoping."""

    def test_missing_tenant_returns_400(self, api):
        response = api.get(f"/reports/surveys/{SURVEY}/heat-map")
        assert response.status_code == 400
        data = response.json()
        assert data["error_code"] == "HTTP_400"
        assert "X-Tenant-Id" in data["message"]

    def test_unknown_tenant_gets_empty_report(self, api):
        response = api.get(f"/reports/surveys/{SURVEY}/heat-map", headers={"X-Tenant-Id": "tenant-2"})
        assert response.status_code == 200
        assert response.json() == []


class TestSurveyEndpoints:
    """Tests for survey-wide report endpoints."""

    def test_heat_map(self, api):
        response = api.get(f"/reports/surveys/{SURVEY}/heat-map", headers=HEADERS)
        assert response.status_code == 200
        row = response.json()[0]
        assert row["subject_id"] == "sub-1"
        assert row["relationship_data"]["Peer"] == {"sent": 4, "completed": 3, "remaining": 1}
        assert row["relationship_data"]["Self"] == {"sent": 1, "completed": 1, "remaining": 0}
        assert row["grand_total"] == {"sent": 5, "completed": 4, "remaining": 1}

    def test_consolidated(self, api):
        response = api.get(f"/reports/surveys/{SURVEY}/consolidated", headers=HEADERS)
        assert response.status_code == 200
        rows = response.json()
        assert len(rows) == 4
        assert sorted(r["total_score"] for r in rows) == [3, 3, 3, 5]

    def test_ratee_average(self, api):
        response = api.get(f"/reports/surveys/{SURVEY}/ratee-average", headers=HEADERS)
        assert response.status_code == 200
        scores = response.json()[0]["competency_scores"]["Communication"]
        assert scores == {"self_score": 5.0, "others_score": 3.0}

    def test_hierarchy(self, api):
        response = api.get(f"/reports/surveys/{SURVEY}/hierarchy", headers=HEADERS)
        assert response.status_code == 200
        clusters = response.json()["clusters"]
        assert clusters[0]["cluster_name"] == "Leadership"
        assert clusters[0]["competencies"][0]["competency_name"] == "Communication"

    def test_questions(self, api):
        response = api.get(f"/reports/surveys/{SURVEY}/questions", headers=HEADERS)
        assert response.status_code == 200
        assert response.json()[0]["question_id"] == "q1"

    def test_unknown_survey(self, api):
        response = api.get("/reports/surveys/missing/ratee-average", headers=HEADERS)
        assert response.status_code == 200
        assert response.json() == []


class TestSubjectEndpoints:
    """Tests for per-subject report endpoints."""

    def test_gaps(self, api):
        response = api.get(subject_url("gaps"), headers=HEADERS)
        assert response.status_code == 200
        data = response.json()
        assert data["latent_strengths"] == []
        assert data["blindspots"][0]["gap"] == -2.0
        assert data["blindspots"][0]["rank"] == 1

    def test_high_low(self, api):
        data = api.get(subject_url("high-low"), headers=HEADERS).json()
        assert data["highest_scores"][0]["average"] == 3.0

    def test_completion(self, api):
        data = api.get(subject_url("completion"), headers=HEADERS).json()
        assert data == [{"relationship_type": "Peer", "total": 4, "completed": 3, "percent_complete": 75}]

    def test_self_assessment(self, api):
        data = api.get(subject_url("self-assessment"), headers=HEADERS).json()
        assert data["status"] == "Completed"

    def test_rater_groups(self, api):
        data = api.get(subject_url("rater-groups"), headers=HEADERS).json()
        assert data["relationship_types"] == ["Peer"]
        assert data["competency_items"][0]["relationship_scores"] == {"Peer": 3.0}

    def test_summary(self, api):
        data = api.get(subject_url("summary"), headers=HEADERS).json()
        assert data["clusters"][0]["self_score"] == 5.0
        assert data["clusters"][0]["others_score"] == 3.0

    def test_agreement(self, api):
        data = api.get(subject_url("agreement"), headers=HEADERS).json()
        distribution = data["competency_items"][0]["score_distribution"]
        assert distribution == {"1": 0, "2": 0, "3": 3, "4": 0, "5": 0}

    def test_open_ended_empty(self, api):
        data = api.get(subject_url("open-ended"), headers=HEADERS).json()
        assert data == {"items": []}

    def test_unknown_subject(self, api):
        response = api.get(
            f"/reports/surveys/{SURVEY}/subjects/nobody/self-assessment", headers=HEADERS
        )
        assert response.status_code == 200
        assert response.json()["status"] == "Not Found"
