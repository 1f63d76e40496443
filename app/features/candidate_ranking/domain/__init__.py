from .models import (  # noqa: F401
    DecisionFilter,
    DisplayOrder,
    EvaluationSummary,
    RankedEvaluation,
    RankingEntry,
    RankInfo,
    SortDirection,
    SortKey,
)
