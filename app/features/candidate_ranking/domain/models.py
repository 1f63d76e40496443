"""
Domain models for candidate ranking.

Evaluation summaries are read-only inputs; ranking entries and rank info are
ephemeral outputs and never persisted.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from decimal import Decimal
from typing import Any


class SortKey(StrEnum):
    CREATED_AT = "created_at"
    TOTAL_SCORE = "total_score"


class SortDirection(StrEnum):
    DESC = "desc"
    ASC = "asc"


class DecisionFilter(StrEnum):
    ALL = "all"
    STRONG_YES_YES = "strong_yes_yes"


def _coerce_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    return None


def _coerce_score(value: Any) -> float | None:
    # psycopg returns NUMERIC columns as Decimal
    if isinstance(value, Decimal):
        return float(value) if value.is_finite() else None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


@dataclass(slots=True)
class EvaluationSummary:
    id: str
    created_at: datetime | None = None
    language: str | None = None
    role_title: str | None = None
    candidate_name: str | None = None
    decision: str | None = None
    total_score: float | None = None

    @classmethod
    def from_mapping(cls, row: dict[str, Any]) -> "EvaluationSummary":
        """Build from a database row or an API payload item."""
        return cls(
            id=str(row["id"]),
            created_at=_coerce_datetime(row.get("created_at")),
            language=row.get("language"),
            role_title=row.get("role_title"),
            candidate_name=row.get("candidate_name"),
            decision=row.get("decision"),
            total_score=_coerce_score(row.get("total_score")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "language": self.language,
            "role_title": self.role_title,
            "candidate_name": self.candidate_name,
            "decision": self.decision,
            "total_score": self.total_score,
        }


@dataclass(frozen=True, slots=True)
class RankingEntry:
    """One LLM-produced (id, rank, reason) tuple. rank 1 = most recommended."""

    evaluation_id: str
    rank: int
    reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.evaluation_id, "rank": self.rank, "reason": self.reason}


@dataclass(frozen=True, slots=True)
class RankInfo:
    rank: int
    reason: str = ""


@dataclass(slots=True)
class RankedEvaluation:
    evaluation: EvaluationSummary
    rank: int
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"evaluation": self.evaluation.to_dict(), "rank": self.rank, "reason": self.reason}


@dataclass(slots=True)
class DisplayOrder:
    """Result of merging a ranking with the evaluation list."""

    evaluations: list[EvaluationSummary]
    rank_lookup: dict[str, RankInfo] = field(default_factory=dict)

    @property
    def ranked(self) -> bool:
        return bool(self.rank_lookup)
