"""
OpenAI Service for Candidate Ranking
Asks the chat completions API to prioritize evaluated candidates for an offer.
"""

import asyncio
import json
from typing import Any

import openai
from openai import AsyncOpenAI

from app.config import settings
from app.errors import NotConfigured, UpstreamError
from app.features.candidate_ranking.domain import EvaluationSummary, RankingEntry
from app.features.candidate_ranking.services.response_parser import parse_ranking_response
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

SUPPORTED_LANGUAGES = ("en", "ja")
DEFAULT_LANGUAGE = "ja"


class RankingServiceError(UpstreamError):
    """Raised when the ranking completion call fails."""

    def __init__(self, message: str, api_error: str | None = None, recoverable: bool = True):
        super().__init__(message, recoverable=recoverable)
        self.api_error = api_error


_SYSTEM_PROMPTS = {
    "en": "\n".join(
        [
            "You assist hiring managers at early-stage software startups.",
            "Rank the given candidates by who the team should prioritize for an offer.",
            "Each candidate has: id, candidate_name, role_title, decision, total_score, created_at.",
            "Use total_score as the main signal and prefer decisions in the order "
            "Strong Yes > Yes > Maybe > No.",
            'Respond only with JSON: {"rankings":[{"id":"...","rank":1,"reason":"..."}]}',
            "reason is one short, factual sentence in English that cites the score or decision.",
        ]
    ),
    "ja": "\n".join(
        [
            "あなたはスタートアップの採用マネージャーを支援するアシスタントです。",
            "候補者一覧を、優先的にオファーすべき順に順位付けしてください。",
            "各候補者には id, candidate_name, role_title, decision, total_score, created_at が含まれます。",
            "total_score を主な指標とし、decision は Strong Yes > Yes > Maybe > No の順で優先してください。",
            '出力は JSON のみ: {"rankings":[{"id":"...","rank":1,"reason":"..."}]}',
            "reason はスコアや判定に触れた簡潔な日本語の一文にしてください。",
        ]
    ),
}


def normalize_language(language: str | None) -> str:
    return language if language in SUPPORTED_LANGUAGES else DEFAULT_LANGUAGE


def build_user_message(evaluations: list[EvaluationSummary]) -> str:
    return json.dumps(
        {"candidates": [e.to_dict() for e in evaluations]},
        ensure_ascii=False,
    )


class RankingCompletionService:
    """Ranks evaluation summaries with an OpenAI chat model."""

    def __init__(self, client: AsyncOpenAI | None = None, *, max_retries: int | None = None):
        self.client = client
        retries = settings.OPENAI_MAX_RETRIES if max_retries is None else max_retries
        self.max_retries = max(1, retries)

    def _get_client(self) -> AsyncOpenAI:
        if self.client is None:
            if not settings.OPENAI_API_KEY:
                raise NotConfigured("OPENAI_API_KEY not configured in settings")
            self.client = AsyncOpenAI(
                api_key=settings.OPENAI_API_KEY,
                timeout=settings.OPENAI_TIMEOUT_SECONDS,
            )
            logger.info("OpenAI client initialized", model=settings.OPENAI_MODEL)
        return self.client

    async def rank(
        self, evaluations: list[EvaluationSummary], language: str | None = None
    ) -> list[RankingEntry]:
        """
        Rank evaluations. Returns [] without calling the API for empty input,
        and [] when the model output is malformed.

        Raises:
            NotConfigured: no API key
            RankingServiceError: the API call failed after retries
        """
        if not evaluations:
            return []

        language = normalize_language(language)
        raw = await self._call_openai_with_retry(
            _SYSTEM_PROMPTS[language], build_user_message(evaluations)
        )
        entries = parse_ranking_response(raw)

        logger.info(
            "Candidate ranking completed",
            candidates=len(evaluations),
            rankings=len(entries),
            language=language,
        )
        return entries

    async def _call_openai_with_retry(self, system_message: str, user_message: str) -> str:
        """Call OpenAI API with retry logic for transient failures."""
        client = self._get_client()
        last_error: Exception | None = None

        for attempt in range(self.max_retries):
            try:
                response = await client.chat.completions.create(
                    model=settings.OPENAI_MODEL,
                    messages=[
                        {"role": "system", "content": system_message},
                        {"role": "user", "content": user_message},
                    ],
                    temperature=settings.OPENAI_TEMPERATURE,
                    response_format={"type": "json_object"},
                )

                if not response.choices or not response.choices[0].message.content:
                    # Treated as an empty ranking by the parser.
                    logger.warning("Empty response from OpenAI API", attempt=attempt + 1)
                    return ""

                return response.choices[0].message.content.strip()

            except openai.RateLimitError as e:
                last_error = e
                wait_time = min(2**attempt, 30)
                logger.warning(
                    "OpenAI rate limit hit, retrying",
                    attempt=attempt + 1,
                    wait_time=wait_time,
                    error=str(e),
                )
                if attempt < self.max_retries - 1:
                    await asyncio.sleep(wait_time)

            except openai.APITimeoutError as e:
                last_error = e
                logger.warning("OpenAI API timeout, retrying", attempt=attempt + 1, error=str(e))

            except openai.APIStatusError as e:
                last_error = e
                # Don't retry on client errors (4xx)
                if 400 <= e.status_code < 500:
                    logger.error("OpenAI client error (not retrying)", error=str(e))
                    break
                logger.warning("OpenAI API error, retrying", attempt=attempt + 1, error=str(e))

            except openai.APIError as e:
                last_error = e
                logger.warning("OpenAI API error, retrying", attempt=attempt + 1, error=str(e))

        logger.error(
            "OpenAI API call failed after all retries",
            max_retries=self.max_retries,
            final_error=str(last_error),
        )
        raise RankingServiceError(
            f"OpenAI API failed after {self.max_retries} attempts",
            api_error=str(last_error),
        ) from last_error

    async def health_check(self) -> dict[str, Any]:
        return {
            "healthy": bool(self.client or settings.OPENAI_API_KEY),
            "service": "ranking_completion",
            "configuration": {
                "model": settings.OPENAI_MODEL,
                "temperature": settings.OPENAI_TEMPERATURE,
                "timeout_seconds": settings.OPENAI_TIMEOUT_SECONDS,
                "max_retries": self.max_retries,
            },
        }
