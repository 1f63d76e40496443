"""
Account deletion routes.

End-user endpoints authenticate with the caller's access token. The finalize
endpoint is for a scheduled job and authenticates with the operator secret.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.auth.verify import access_token_dependency, operator_secret_dependency
from app.errors import AppError, to_http_exception
from app.features.account_deletion.domain import describe_state
from app.features.account_deletion.services import AccountDeletionService
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/account/delete", tags=["Account Deletion"])


def get_account_deletion_service(request: Request) -> AccountDeletionService:
    service = getattr(request.app.state, "account_deletion_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_501_NOT_IMPLEMENTED,
            detail="Account deletion is not configured",
        )
    return service


@router.post(
    "",
    status_code=200,
    summary="Schedule account deletion",
    description="""
    Schedule permanent deletion of your account after the grace period
    (30 days by default). Can be cancelled until then via /account/delete/cancel.
    """,
)
async def schedule_account_deletion(
    access_token: str | None = Depends(access_token_dependency),
    service: AccountDeletionService = Depends(get_account_deletion_service),
):
    try:
        result = await service.schedule_deletion(access_token)
    except AppError as e:
        logger.warning("Schedule deletion rejected", error=e.message, status_code=e.status_code)
        raise to_http_exception(e) from e

    return result.to_dict()


@router.post("/cancel", status_code=200, summary="Cancel a scheduled account deletion")
async def cancel_account_deletion(
    access_token: str | None = Depends(access_token_dependency),
    service: AccountDeletionService = Depends(get_account_deletion_service),
):
    try:
        return await service.cancel_deletion(access_token)
    except AppError as e:
        logger.warning("Cancel deletion rejected", error=e.message, status_code=e.status_code)
        raise to_http_exception(e) from e


@router.get("/status", status_code=200, summary="Check account deletion status")
async def account_deletion_status(
    access_token: str | None = Depends(access_token_dependency),
    service: AccountDeletionService = Depends(get_account_deletion_service),
):
    try:
        state = await service.get_deletion_status(access_token)
    except AppError as e:
        raise to_http_exception(e) from e

    return {**describe_state(state), "grace_period_days": service.grace_period_days}


@router.post(
    "/finalize",
    status_code=200,
    summary="Finalize due account deletions (operator)",
    description="""
    Hard delete every account whose grace period has elapsed.

    Authenticate with the operator secret in the `x-cron-secret` header or the
    `secret` query parameter; the request passes when either one matches.
    Returns 501 when no secret is configured.
    Safe to call repeatedly.
    """,
)
async def finalize_account_deletions(
    credentials: list[str] = Depends(operator_secret_dependency),
    service: AccountDeletionService = Depends(get_account_deletion_service),
):
    try:
        report = await service.finalize_due(credentials)
    except AppError as e:
        logger.error("Finalize deletions failed", error=e.message, status_code=e.status_code)
        raise to_http_exception(e) from e

    return report.to_dict()
