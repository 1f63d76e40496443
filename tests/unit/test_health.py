"""
Tests for health check endpoints.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

from fastapi.testclient import TestClient

from app.features.candidate_ranking.services import RankingCompletionService
from app.main import app

client = TestClient(app)


def test_healthz_endpoint():
    """Test the basic health check endpoint."""
    response = client.get("/healthz")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["service"] == "interviewpilot-backend"


def test_readyz_in_memory_mode():
    """Without a database URL the app reports in-memory mode and stays ready."""
    with patch("app.routes.health.settings.SUPABASE_DB_URL", None):
        response = client.get("/readyz")

    assert response.status_code == 200
    data = response.json()
    assert data["overall_ok"] is True
    assert data["checks"]["database"]["mode"] == "in_memory"


def test_readyz_database_healthy():
    with (
        patch("app.routes.health.settings.SUPABASE_DB_URL", "postgresql://localhost/test"),
        patch(
            "app.routes.health.db_health_check",
            new=AsyncMock(return_value={"healthy": True}),
        ),
    ):
        response = client.get("/readyz")

    data = response.json()
    assert data["overall_ok"] is True
    assert data["checks"]["database"]["ok"] is True
    assert isinstance(data["checks"]["database"]["latency_ms"], (int, float))


def test_readyz_database_unhealthy():
    with (
        patch("app.routes.health.settings.SUPABASE_DB_URL", "postgresql://localhost/test"),
        patch(
            "app.routes.health.db_health_check",
            new=AsyncMock(return_value={"healthy": False, "error": "Connection failed"}),
        ),
    ):
        response = client.get("/readyz")

    # Still 200, but overall_ok is False
    assert response.status_code == 200
    data = response.json()
    assert data["overall_ok"] is False
    assert data["checks"]["database"]["error"] == "Connection failed"


def test_readyz_reports_configuration():
    with (
        patch("app.routes.health.settings.SUPABASE_DB_URL", None),
        patch("app.routes.health.settings.ACCOUNT_DELETION_CRON_SECRET", None),
        patch("app.routes.health.settings.OPENAI_API_KEY", "sk-test"),
    ):
        response = client.get("/readyz")

    configuration = response.json()["checks"]["configuration"]
    assert configuration["finalize_endpoint"] is False
    assert configuration["openai"] is True



def test_readyz_reports_ranking_client():
    ranker = RankingCompletionService(MagicMock(), max_retries=2)
    app.state.candidate_ranking_service = SimpleNamespace(ranker=ranker)
    try:
        with patch("app.routes.health.settings.SUPABASE_DB_URL", None):
            response = client.get("/readyz")
    finally:
        del app.state.candidate_ranking_service

    assert response.status_code == 200
    data = response.json()
    assert data["overall_ok"] is True
    ranking = data["checks"]["ranking"]
    assert ranking["healthy"] is True
    assert ranking["service"] == "ranking_completion"
    assert ranking["configuration"]["max_retries"] == 2


def test_readyz_ranking_not_configured_does_not_fail_readiness():
    app.state.candidate_ranking_service = SimpleNamespace(ranker=RankingCompletionService())
    try:
        with (
            patch("app.routes.health.settings.SUPABASE_DB_URL", None),
            patch("app.features.candidate_ranking.services.ranking_client.settings.OPENAI_API_KEY", None),
        ):
            response = client.get("/readyz")
    finally:
        del app.state.candidate_ranking_service

    data = response.json()
    assert data["overall_ok"] is True
    assert data["checks"]["ranking"]["healthy"] is False

def test_request_id_echoed():
    response = client.get("/healthz", headers={"x-request-id": "req-42"})

    assert response.headers["x-request-id"] == "req-42"


def test_request_id_generated_when_missing():
    response = client.get("/healthz")

    assert len(response.headers["x-request-id"]) == 32
