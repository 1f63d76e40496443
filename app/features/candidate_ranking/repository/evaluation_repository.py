"""
Evaluation record store.

``PostgresEvaluationRepository`` reads the ``interview_evaluations`` table
through the shared connection pool. ``InMemoryEvaluationRepository`` is the
non-durable fallback used when no database is configured.
"""

from typing import Protocol

from app.db.helpers import execute_query, fetch_all
from app.features.candidate_ranking.domain import EvaluationSummary
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class EvaluationRepository(Protocol):
    async def list_evaluations(self, user_id: str) -> list[EvaluationSummary]: ...

    async def delete_evaluation(self, evaluation_id: str) -> bool: ...


class PostgresEvaluationRepository:
    """Evaluation summaries stored in Postgres."""

    SELECT_COLUMNS = """
        id, created_at, language, role_title, candidate_name, decision, total_score
    """

    async def list_evaluations(self, user_id: str) -> list[EvaluationSummary]:
        query = f"""
            SELECT {self.SELECT_COLUMNS}
            FROM interview_evaluations
            WHERE user_id = %s
            ORDER BY created_at DESC
        """
        rows = await fetch_all(query, (user_id,))
        return [EvaluationSummary.from_mapping(row) for row in rows]

    async def delete_evaluation(self, evaluation_id: str) -> bool:
        deleted = await execute_query(
            "DELETE FROM interview_evaluations WHERE id = %s", (evaluation_id,)
        )
        logger.info("Evaluation deleted", evaluation_id=evaluation_id, rows=deleted)
        return deleted > 0


class InMemoryEvaluationRepository:
    """Process-local evaluation store. Contents are lost on restart."""

    def __init__(self):
        self._rows: list[tuple[str | None, EvaluationSummary]] = []

    def add_evaluation(self, user_id: str | None, evaluation: EvaluationSummary) -> EvaluationSummary:
        self._rows.append((user_id, evaluation))
        return evaluation

    async def list_evaluations(self, user_id: str) -> list[EvaluationSummary]:
        rows = [e for owner, e in self._rows if owner == user_id]
        return sorted(rows, key=lambda e: e.created_at.timestamp() if e.created_at else 0, reverse=True)

    async def delete_evaluation(self, evaluation_id: str) -> bool:
        for index, (_, evaluation) in enumerate(self._rows):
            if evaluation.id == evaluation_id:
                del self._rows[index]
                return True
        return False
