"""
Candidate ranking aggregation.

Merges an LLM priority ordering with the evaluation list. Every input
evaluation appears exactly once in the output; ranked ones first by ascending
rank, unranked ones after them in input order.
"""

from datetime import UTC, datetime

from app.features.candidate_ranking.domain import (
    DecisionFilter,
    DisplayOrder,
    EvaluationSummary,
    RankedEvaluation,
    RankingEntry,
    RankInfo,
    SortDirection,
    SortKey,
)

DEFAULT_TOP_N = 5

_STRONG_YES_YES = {"strong_yes", "strong yes", "yes"}
_OLDEST = datetime.min.replace(tzinfo=UTC)


def build_rank_lookup(
    ranking: list[RankingEntry], evaluation_ids: set[str] | None = None
) -> dict[str, RankInfo]:
    """
    Map evaluation id -> rank info.

    Entries without an id are discarded and the first occurrence of an id
    wins. With ``evaluation_ids`` given, ids outside that set are dropped.
    """
    lookup: dict[str, RankInfo] = {}
    for entry in ranking:
        if not entry.evaluation_id or entry.evaluation_id in lookup:
            continue
        if evaluation_ids is not None and entry.evaluation_id not in evaluation_ids:
            continue
        lookup[entry.evaluation_id] = RankInfo(rank=entry.rank, reason=entry.reason)
    return lookup


def sort_by_default(
    evaluations: list[EvaluationSummary],
    sort_key: SortKey = SortKey.CREATED_AT,
    direction: SortDirection = SortDirection.DESC,
) -> list[EvaluationSummary]:
    """Stable sort by creation time or score; missing scores count as -inf."""
    if sort_key == SortKey.TOTAL_SCORE:

        def key(e: EvaluationSummary) -> float:
            return e.total_score if e.total_score is not None else float("-inf")

    else:

        def key(e: EvaluationSummary) -> datetime:
            return e.created_at or _OLDEST

    return sorted(evaluations, key=key, reverse=direction == SortDirection.DESC)


def compute_display_order(
    evaluations: list[EvaluationSummary],
    ranking: list[RankingEntry] | None,
    sort_key: SortKey = SortKey.CREATED_AT,
    direction: SortDirection = SortDirection.DESC,
) -> DisplayOrder:
    """
    Order evaluations by ranking, or by the default ordering when there is none.
    """
    lookup = build_rank_lookup(ranking or [], {e.id for e in evaluations})

    if not lookup:
        return DisplayOrder(evaluations=sort_by_default(evaluations, sort_key, direction))

    ordered = sorted(
        evaluations,
        key=lambda e: lookup[e.id].rank if e.id in lookup else float("inf"),
    )
    return DisplayOrder(evaluations=ordered, rank_lookup=lookup)


def top_ranked(
    evaluations: list[EvaluationSummary],
    rank_lookup: dict[str, RankInfo],
    limit: int = DEFAULT_TOP_N,
) -> list[RankedEvaluation]:
    """The ``limit`` evaluations with the lowest rank, ascending."""
    ranked = [
        RankedEvaluation(evaluation=e, rank=rank_lookup[e.id].rank, reason=rank_lookup[e.id].reason)
        for e in evaluations
        if e.id in rank_lookup
    ]
    ranked.sort(key=lambda r: r.rank)
    return ranked[: max(limit, 0)]


def filter_evaluations(
    evaluations: list[EvaluationSummary],
    role_title: str | None = None,
    decision_filter: DecisionFilter = DecisionFilter.ALL,
) -> list[EvaluationSummary]:
    result = evaluations
    if role_title:
        result = [e for e in result if e.role_title == role_title]
    if decision_filter == DecisionFilter.STRONG_YES_YES:
        result = [e for e in result if (e.decision or "").strip().lower() in _STRONG_YES_YES]
    return result


def role_options(evaluations: list[EvaluationSummary]) -> list[str]:
    return sorted({e.role_title for e in evaluations if e.role_title})
