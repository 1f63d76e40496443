"""
Tests for the database pool and the Postgres evaluation store.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, patch

import psycopg
import pytest

from app.db.helpers import DatabaseError, execute_query, fetch_all
from app.db.pool import DatabasePoolManager
from app.features.candidate_ranking.repository import PostgresEvaluationRepository


class TestDatabasePool:
    @pytest.mark.asyncio
    async def test_health_check_uninitialized(self):
        pool = DatabasePoolManager()

        result = await pool.health_check()

        assert result["healthy"] is False
        assert result["error"] == "Pool not initialized"

    @pytest.mark.asyncio
    async def test_connection_requires_initialize(self):
        pool = DatabasePoolManager()

        with pytest.raises(RuntimeError):
            async with pool.connection():
                pass

    @pytest.mark.asyncio
    async def test_initialize_requires_database_url(self):
        pool = DatabasePoolManager()

        with patch("app.db.pool.settings.SUPABASE_DB_URL", None):
            with pytest.raises(RuntimeError, match="SUPABASE_DB_URL"):
                await pool.initialize()

        assert pool.initialized is False

    @pytest.mark.asyncio
    async def test_close_without_initialize_is_noop(self):
        pool = DatabasePoolManager()

        await pool.close()

        assert pool.initialized is False


class TestPostgresEvaluationRepository:
    @pytest.mark.asyncio
    async def test_list_evaluations_maps_rows(self):
        rows = [
            {
                "id": "b6f8",
                "created_at": datetime(2025, 2, 1, tzinfo=UTC),
                "language": "ja",
                "role_title": "Backend Engineer",
                "candidate_name": "Sato",
                "decision": "Yes",
                "total_score": 78,
            }
        ]
        with patch(
            "app.features.candidate_ranking.repository.evaluation_repository.fetch_all",
            new=AsyncMock(return_value=rows),
        ) as mock_fetch:
            evaluations = await PostgresEvaluationRepository().list_evaluations("owner-1")

        assert evaluations[0].id == "b6f8"
        assert evaluations[0].total_score == 78
        query, params = mock_fetch.call_args.args
        assert "FROM interview_evaluations" in query
        assert "ORDER BY created_at DESC" in query
        assert params == ("owner-1",)

    @pytest.mark.asyncio
    async def test_delete_evaluation_reports_rowcount(self):
        with patch(
            "app.features.candidate_ranking.repository.evaluation_repository.execute_query",
            new=AsyncMock(side_effect=[1, 0]),
        ):
            repo = PostgresEvaluationRepository()
            assert await repo.delete_evaluation("b6f8") is True
            assert await repo.delete_evaluation("b6f8") is False


class TestQueryHelpers:
    @pytest.mark.asyncio
    async def test_fetch_all_uses_given_connection(self):
        cursor = AsyncMock()
        cursor.fetchall.return_value = [{"id": "e1"}]
        conn = AsyncMock()
        conn.execute.return_value = cursor

        rows = await fetch_all("SELECT id FROM interview_evaluations WHERE user_id = %s", ("u1",), connection=conn)

        assert rows == [{"id": "e1"}]
        conn.execute.assert_awaited_once_with(
            "SELECT id FROM interview_evaluations WHERE user_id = %s", ("u1",)
        )

    @pytest.mark.asyncio
    async def test_psycopg_error_becomes_database_error(self):
        conn = AsyncMock()
        conn.execute.side_effect = psycopg.OperationalError("server closed the connection")

        with pytest.raises(DatabaseError) as exc_info:
            await execute_query("DELETE FROM interview_evaluations WHERE id = %s", ("e1",), connection=conn)

        assert exc_info.value.operation == "execute"
        assert exc_info.value.status_code == 502
