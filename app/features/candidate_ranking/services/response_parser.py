"""
Validation of untrusted ranking output from the LLM.

The raw response is decoded into plain Python values first and then checked
field by field. Invalid entries are dropped; nothing here raises.
"""

import json
from typing import Any

from app.features.candidate_ranking.domain import RankingEntry
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


def _coerce_id(value: Any) -> str | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _coerce_rank(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    elif isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            return None
    if not isinstance(value, int) or value < 1:
        return None
    return value


def parse_ranking_entry(item: Any) -> RankingEntry | None:
    if not isinstance(item, dict):
        return None

    evaluation_id = _coerce_id(item.get("id"))
    rank = _coerce_rank(item.get("rank"))
    if evaluation_id is None or rank is None:
        return None

    reason = item.get("reason")
    return RankingEntry(
        evaluation_id=evaluation_id,
        rank=rank,
        reason=reason.strip() if isinstance(reason, str) else "",
    )


def parse_ranking_response(raw: Any) -> list[RankingEntry]:
    """
    Parse a ranking response of the shape ``{"rankings": [{id, rank, reason}]}``.

    ``raw`` may be the JSON text or an already-decoded value. Returns an empty
    list for anything that is not a list of rankings.
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError:
            logger.warning("Ranking response is not valid JSON")
            return []

    rankings = raw.get("rankings") if isinstance(raw, dict) else None
    if not isinstance(rankings, list):
        logger.warning("Ranking response has no rankings list", response_type=type(raw).__name__)
        return []

    entries = [entry for entry in (parse_ranking_entry(item) for item in rankings) if entry]

    dropped = len(rankings) - len(entries)
    if dropped:
        logger.info("Dropped invalid ranking entries", dropped=dropped, kept=len(entries))

    return entries
