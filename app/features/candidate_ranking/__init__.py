"""
Candidate ranking feature package.

Merges LLM candidate rankings with stored evaluation summaries. Domain
models, the evaluation repository, the ranking client, the aggregator and
the HTTP router live together in this vertical slice.
"""

from .api.router import router as candidate_ranking_router  # noqa: F401
from .domain.models import EvaluationSummary, RankingEntry, RankInfo  # noqa: F401
from .services import (  # noqa: F401
    CandidateRankingService,
    build_candidate_ranking_service,
    compute_display_order,
)
