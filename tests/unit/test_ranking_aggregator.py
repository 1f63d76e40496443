from datetime import UTC, datetime
from decimal import Decimal

from app.features.candidate_ranking.domain import (
    DecisionFilter,
    EvaluationSummary,
    RankingEntry,
    SortDirection,
    SortKey,
)
from app.features.candidate_ranking.services.aggregator import (
    build_rank_lookup,
    compute_display_order,
    filter_evaluations,
    role_options,
    top_ranked,
)


def _evaluation(eid, day=1, score=None, role=None, decision=None):
    return EvaluationSummary(
        id=eid,
        created_at=datetime(2025, 1, day, tzinfo=UTC),
        role_title=role,
        decision=decision,
        total_score=score,
    )


def _ids(evaluations):
    return [e.id for e in evaluations]


E1, E2, E3 = _evaluation("e1", day=3), _evaluation("e2", day=2), _evaluation("e3", day=1)


def test_ranked_first_then_unranked_in_input_order():
    ranking = [RankingEntry("e2", 1, "best"), RankingEntry("e1", 2, "ok")]

    order = compute_display_order([E1, E2, E3], ranking)

    assert _ids(order.evaluations) == ["e2", "e1", "e3"]
    assert order.ranked is True
    assert order.rank_lookup["e2"].reason == "best"


def test_unranked_keep_relative_order():
    ranking = [RankingEntry("e3", 1)]
    e4 = _evaluation("e4", day=5)

    order = compute_display_order([E1, E2, e4, E3], ranking)

    assert _ids(order.evaluations) == ["e3", "e1", "e2", "e4"]


def test_rank_ties_keep_input_order():
    ranking = [RankingEntry("e3", 1), RankingEntry("e1", 1)]

    order = compute_display_order([E1, E2, E3], ranking)

    assert _ids(order.evaluations) == ["e1", "e3", "e2"]


def test_duplicate_ids_first_occurrence_wins():
    lookup = build_rank_lookup([RankingEntry("e1", 3, "first"), RankingEntry("e1", 1, "second")])

    assert lookup["e1"].rank == 3
    assert lookup["e1"].reason == "first"


def test_unknown_and_empty_ids_are_ignored():
    ranking = [RankingEntry("", 1), RankingEntry("ghost", 1), RankingEntry("e2", 4)]

    order = compute_display_order([E1, E2, E3], ranking)

    assert set(order.rank_lookup) == {"e2"}
    assert _ids(order.evaluations) == ["e2", "e1", "e3"]


def test_every_evaluation_appears_exactly_once():
    ranking = [RankingEntry("e1", 2), RankingEntry("e1", 1), RankingEntry("e3", 1)]

    order = compute_display_order([E1, E2, E3], ranking)

    assert sorted(_ids(order.evaluations)) == ["e1", "e2", "e3"]


def test_no_ranking_uses_created_at_desc():
    order = compute_display_order([E3, E1, E2], None)

    assert _ids(order.evaluations) == ["e1", "e2", "e3"]
    assert order.ranked is False


def test_empty_ranking_uses_default_ascending():
    order = compute_display_order([E1, E2, E3], [], direction=SortDirection.ASC)

    assert _ids(order.evaluations) == ["e3", "e2", "e1"]


def test_score_sort_puts_missing_scores_last_when_descending():
    evaluations = [_evaluation("a", score=None), _evaluation("b", score=70), _evaluation("c", score=90)]

    order = compute_display_order(evaluations, [], sort_key=SortKey.TOTAL_SCORE)

    assert _ids(order.evaluations) == ["c", "b", "a"]


def test_ranking_wins_over_sort_key():
    evaluations = [_evaluation("a", score=10), _evaluation("b", score=90)]

    order = compute_display_order(evaluations, [RankingEntry("a", 1)], sort_key=SortKey.TOTAL_SCORE)

    assert _ids(order.evaluations) == ["a", "b"]


def test_top_ranked_truncates_and_sorts():
    evaluations = [_evaluation(f"e{i}") for i in range(8)]
    ranking = [RankingEntry(f"e{i}", 8 - i, f"reason {i}") for i in range(8)]
    order = compute_display_order(evaluations, ranking)

    top = top_ranked(order.evaluations, order.rank_lookup, limit=5)

    assert [r.rank for r in top] == [1, 2, 3, 4, 5]
    assert top[0].evaluation.id == "e7"
    assert top[0].reason == "reason 7"


def test_top_ranked_fewer_than_limit():
    order = compute_display_order([E1, E2, E3], [RankingEntry("e2", 1)])

    top = top_ranked(order.evaluations, order.rank_lookup)

    assert [r.evaluation.id for r in top] == ["e2"]


def test_filter_by_role_and_decision():
    evaluations = [
        _evaluation("a", role="Engineer", decision="strong_yes"),
        _evaluation("b", role="Engineer", decision="no"),
        _evaluation("c", role="Designer", decision="Yes"),
        _evaluation("d", role="Engineer", decision=None),
    ]

    assert _ids(filter_evaluations(evaluations, role_title="Engineer")) == ["a", "b", "d"]
    assert _ids(filter_evaluations(evaluations, decision_filter=DecisionFilter.STRONG_YES_YES)) == ["a", "c"]
    assert _ids(
        filter_evaluations(evaluations, "Engineer", DecisionFilter.STRONG_YES_YES)
    ) == ["a"]


def test_role_options_sorted_unique():
    evaluations = [
        _evaluation("a", role="Engineer"),
        _evaluation("b", role="Designer"),
        _evaluation("c", role="Engineer"),
        _evaluation("d"),
    ]

    assert role_options(evaluations) == ["Designer", "Engineer"]


def test_numeric_column_scores_are_floats():
    summary = EvaluationSummary.from_mapping({"id": "x", "total_score": Decimal("78.5")})

    assert summary.total_score == 78.5
    assert isinstance(summary.total_score, float)


def test_non_numeric_scores_are_missing():
    assert EvaluationSummary.from_mapping({"id": "x", "total_score": Decimal("NaN")}).total_score is None
    assert EvaluationSummary.from_mapping({"id": "x", "total_score": True}).total_score is None
    assert EvaluationSummary.from_mapping({"id": "x", "total_score": "80"}).total_score is None
