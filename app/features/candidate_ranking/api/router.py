"""
Evaluation routes: list, delete, AI ranking and the merged results view.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from app.errors import AppError, to_http_exception
from app.features.candidate_ranking.domain import (
    DecisionFilter,
    EvaluationSummary,
    SortDirection,
    SortKey,
)
from app.features.candidate_ranking.services import CandidateRankingService
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/evaluation", tags=["Evaluations"])


class EvaluationItem(BaseModel):
    id: str
    created_at: str | None = None
    language: str | None = None
    role_title: str | None = None
    candidate_name: str | None = None
    decision: str | None = None
    total_score: float | None = None


class RankRequest(BaseModel):
    language: str | None = None
    evaluations: list[EvaluationItem] = Field(default_factory=list)


class DeleteRequest(BaseModel):
    id: str | None = None


def get_candidate_ranking_service(request: Request) -> CandidateRankingService:
    service = getattr(request.app.state, "candidate_ranking_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_501_NOT_IMPLEMENTED,
            detail="Evaluation store is not configured",
        )
    return service


@router.get("/list", summary="List a user's evaluations (newest first)")
async def list_evaluations(
    user_id: str | None = Query(default=None),
    service: CandidateRankingService = Depends(get_candidate_ranking_service),
):
    try:
        evaluations = await service.list_evaluations(user_id)
    except AppError as e:
        raise to_http_exception(e) from e

    return {"evaluations": [e.to_dict() for e in evaluations]}


@router.post("/delete", summary="Delete an evaluation")
async def delete_evaluation(
    body: DeleteRequest,
    service: CandidateRankingService = Depends(get_candidate_ranking_service),
):
    try:
        await service.delete_evaluation(body.id)
    except AppError as e:
        raise to_http_exception(e) from e

    return {"success": True}


@router.post(
    "/rank",
    summary="Rank candidates with AI",
    description="""
    Ask the language model to prioritize the given evaluations for an offer.
    Malformed model output yields an empty ranking; an upstream failure returns
    502 with an empty ranking so clients fall back to their default order.
    """,
)
async def rank_evaluations(
    body: RankRequest,
    service: CandidateRankingService = Depends(get_candidate_ranking_service),
):
    evaluations = [EvaluationSummary.from_mapping(item.model_dump()) for item in body.evaluations]
    rankings, error = await service.try_rank(evaluations, body.language)

    payload = {"rankings": [entry.to_dict() for entry in rankings]}
    if error is not None:
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content=payload)
    return payload


@router.get("/ranked", summary="Evaluations in AI display order with top picks")
async def ranked_evaluations(
    user_id: str | None = Query(default=None),
    language: str | None = Query(default=None),
    role_title: str | None = Query(default=None),
    decision_filter: DecisionFilter = Query(default=DecisionFilter.ALL),
    sort_key: SortKey = Query(default=SortKey.CREATED_AT),
    direction: SortDirection = Query(default=SortDirection.DESC),
    service: CandidateRankingService = Depends(get_candidate_ranking_service),
):
    try:
        results = await service.ranked_results(
            user_id,
            language=language,
            role_title=role_title,
            decision_filter=decision_filter,
            sort_key=sort_key,
            direction=direction,
        )
    except AppError as e:
        raise to_http_exception(e) from e

    return results.to_dict()
