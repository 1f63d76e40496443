"""
Candidate ranking service.

Loads a user's evaluations, applies the results-page filters, asks the
ranking completion service for an ordering and merges the two. A failed or
malformed ranking never fails the request: the caller gets the default order
with ``ranked=False``.
"""

from dataclasses import dataclass
from typing import Any

from app.errors import AppError, NotFound, ValidationError
from app.features.candidate_ranking.domain import (
    DecisionFilter,
    DisplayOrder,
    EvaluationSummary,
    RankedEvaluation,
    RankingEntry,
    SortDirection,
    SortKey,
)
from app.features.candidate_ranking.repository import EvaluationRepository
from app.features.candidate_ranking.services.aggregator import (
    DEFAULT_TOP_N,
    compute_display_order,
    filter_evaluations,
    role_options,
    top_ranked,
)
from app.features.candidate_ranking.services.ranking_client import RankingCompletionService
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


@dataclass(slots=True)
class RankedResults:
    display: DisplayOrder
    top: list[RankedEvaluation]
    roles: list[str]
    ranking_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "evaluations": [e.to_dict() for e in self.display.evaluations],
            "rank_lookup": {
                evaluation_id: {"rank": info.rank, "reason": info.reason}
                for evaluation_id, info in self.display.rank_lookup.items()
            },
            "ranked": self.display.ranked,
            "top_ranked": [r.to_dict() for r in self.top],
            "role_options": self.roles,
            "ranking_error": self.ranking_error,
        }


class CandidateRankingService:
    def __init__(
        self,
        evaluations: EvaluationRepository,
        ranker: RankingCompletionService,
        *,
        top_n: int = DEFAULT_TOP_N,
    ):
        self.evaluations = evaluations
        self.ranker = ranker
        self.top_n = top_n

    async def list_evaluations(self, user_id: str | None) -> list[EvaluationSummary]:
        if not user_id:
            raise ValidationError("Missing user id")
        return await self.evaluations.list_evaluations(user_id)

    async def delete_evaluation(self, evaluation_id: str | None) -> None:
        if not evaluation_id:
            raise ValidationError("Missing evaluation id")
        if not await self.evaluations.delete_evaluation(evaluation_id):
            raise NotFound("Evaluation not found")

    async def try_rank(
        self, evaluations: list[EvaluationSummary], language: str | None
    ) -> tuple[list[RankingEntry], str | None]:
        """Rank, absorbing collaborator failures into an empty ranking."""
        try:
            return await self.ranker.rank(evaluations, language), None
        except AppError as e:
            logger.error("Candidate ranking unavailable", error=e.message, candidates=len(evaluations))
            return [], e.message

    async def ranked_results(
        self,
        user_id: str | None,
        *,
        language: str | None = None,
        role_title: str | None = None,
        decision_filter: DecisionFilter = DecisionFilter.ALL,
        sort_key: SortKey = SortKey.CREATED_AT,
        direction: SortDirection = SortDirection.DESC,
    ) -> RankedResults:
        all_evaluations = await self.list_evaluations(user_id)
        filtered = filter_evaluations(all_evaluations, role_title, decision_filter)

        ranking, error = await self.try_rank(filtered, language)
        display = compute_display_order(filtered, ranking, sort_key, direction)

        return RankedResults(
            display=display,
            top=top_ranked(filtered, display.rank_lookup, self.top_n),
            roles=role_options(all_evaluations),
            ranking_error=error,
        )
