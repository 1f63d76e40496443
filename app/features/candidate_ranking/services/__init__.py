from app.config import Settings
from app.db.pool import db_pool
from app.features.candidate_ranking.repository import (
    EvaluationRepository,
    InMemoryEvaluationRepository,
    PostgresEvaluationRepository,
)
from app.infrastructure.observability.logging import get_logger

from .aggregator import (
    build_rank_lookup,
    compute_display_order,
    filter_evaluations,
    role_options,
    sort_by_default,
    top_ranked,
)
from .ranking_client import RankingCompletionService, RankingServiceError
from .ranking_service import CandidateRankingService, RankedResults
from .response_parser import parse_ranking_response

logger = get_logger(__name__)

__all__ = [
    "CandidateRankingService",
    "RankedResults",
    "RankingCompletionService",
    "RankingServiceError",
    "build_candidate_ranking_service",
    "build_evaluation_repository",
    "build_rank_lookup",
    "compute_display_order",
    "filter_evaluations",
    "parse_ranking_response",
    "role_options",
    "sort_by_default",
    "top_ranked",
]


def build_evaluation_repository(settings: Settings) -> EvaluationRepository:
    if settings.database_configured() and db_pool.initialized:
        return PostgresEvaluationRepository()

    logger.warning("Database not configured, using in-memory evaluation store (not durable)")
    return InMemoryEvaluationRepository()


def build_candidate_ranking_service(
    settings: Settings, evaluations: EvaluationRepository | None = None
) -> CandidateRankingService:
    return CandidateRankingService(
        evaluations if evaluations is not None else build_evaluation_repository(settings),
        RankingCompletionService(),
        top_n=settings.RANKING_TOP_N,
    )
