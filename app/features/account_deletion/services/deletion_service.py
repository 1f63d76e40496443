"""
Account Deletion Service - scheduled deletion with a grace period.

Lifecycle:
- schedule_deletion: Active -> Scheduled (requested_at = now,
  scheduled_for = now + grace period). Re-scheduling issues fresh timestamps.
- cancel_deletion: Scheduled -> Active. Idempotent.
- finalize_due / sweep: hard deletes every account whose grace period has
  elapsed, one page of users at a time.

Design Principles:
1. The metadata write is the transaction boundary; notifications are
   best-effort and never fail the request.
2. Malformed deletion metadata never causes a deletion.
3. One failing user never blocks the rest of a sweep.
4. Re-running a sweep is safe: deleted users no longer appear in enumeration.
"""

import hmac
from collections.abc import Callable, Iterable
from datetime import UTC, datetime, timedelta

from app.errors import NotConfigured, Unauthorized
from app.features.account_deletion.domain import (
    REQUESTED_AT_KEY,
    SCHEDULED_FOR_KEY,
    STEP_DELETE_USER,
    STEP_SEND_EMAIL,
    DeletionState,
    Due,
    NotificationResult,
    ScheduleResult,
    SweepError,
    SweepReport,
    UserAccount,
    format_timestamp,
    resolve_deletion_state,
)
from app.features.account_deletion.repository import UserRepository
from app.features.account_deletion.services.notification_service import (
    NotificationKind,
    NotificationSender,
)
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

DEFAULT_GRACE_PERIOD_DAYS = 30
DEFAULT_PAGE_SIZE = 1000


def _utcnow() -> datetime:
    return datetime.now(UTC)


class AccountDeletionService:
    """Schedules, cancels and finalizes account deletions."""

    def __init__(
        self,
        users: UserRepository,
        notifier: NotificationSender,
        *,
        grace_period_days: int = DEFAULT_GRACE_PERIOD_DAYS,
        page_size: int = DEFAULT_PAGE_SIZE,
        operator_secret: str | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if grace_period_days < 0:
            raise ValueError("grace_period_days must be >= 0")
        if page_size < 1:
            raise ValueError("page_size must be >= 1")

        self.users = users
        self.notifier = notifier
        self.grace_period_days = grace_period_days
        self.page_size = page_size
        self.operator_secret = operator_secret
        self.clock = clock

    # =======================================================================
    # END-USER OPERATIONS
    # =======================================================================

    async def _authenticate(self, access_token: str | None) -> UserAccount:
        if not access_token:
            raise Unauthorized("Missing access token")

        user = await self.users.find_user_by_token(access_token)
        if user is None:
            raise Unauthorized("Unauthorized")
        return user

    async def schedule_deletion(self, access_token: str | None) -> ScheduleResult:
        """
        Schedule the caller's account for deletion after the grace period.

        Raises:
            Unauthorized: token missing or not resolvable to a user
            UserStoreError: the metadata write failed
        """
        user = await self._authenticate(access_token)

        requested_at = self.clock()
        scheduled_for = requested_at + timedelta(days=self.grace_period_days)

        await self.users.update_user_metadata(
            user.id,
            {
                REQUESTED_AT_KEY: format_timestamp(requested_at),
                SCHEDULED_FOR_KEY: format_timestamp(scheduled_for),
            },
        )

        logger.info(
            "Account deletion scheduled",
            user_id=user.id,
            grace_period_days=self.grace_period_days,
            scheduled_for=scheduled_for.isoformat(),
        )

        email = NotificationResult(configured=getattr(self.notifier, "configured", False))
        if user.email:
            try:
                email = await self.notifier.send(
                    user.email,
                    NotificationKind.DELETION_SCHEDULED,
                    {
                        "requested_at": format_timestamp(requested_at),
                        "scheduled_for": format_timestamp(scheduled_for),
                        "grace_period_days": self.grace_period_days,
                    },
                )
            except Exception as e:
                # The schedule is already recorded.
                logger.error(
                    "Deletion scheduled email failed",
                    user_id=user.id,
                    error=str(e),
                    error_type=type(e).__name__,
                )

        return ScheduleResult(
            requested_at=requested_at,
            scheduled_for=scheduled_for,
            grace_period_days=self.grace_period_days,
            email=email,
        )

    async def cancel_deletion(self, access_token: str | None) -> dict:
        """Clear any pending deletion. Succeeds when nothing is pending."""
        user = await self._authenticate(access_token)

        await self.users.update_user_metadata(
            user.id, {REQUESTED_AT_KEY: None, SCHEDULED_FOR_KEY: None}
        )

        logger.info("Account deletion cancelled", user_id=user.id)
        return {"success": True}

    async def get_deletion_status(self, access_token: str | None) -> DeletionState:
        user = await self._authenticate(access_token)
        return resolve_deletion_state(user.metadata, self.clock())

    # =======================================================================
    # OPERATOR OPERATIONS
    # =======================================================================

    def authorize_operator(self, credentials: str | Iterable[str] | None) -> None:
        """
        Check the operator shared secret. Passes when any supplied candidate matches.

        Raises:
            NotConfigured: no secret has been configured
            Unauthorized: secret missing or wrong
        """
        if not self.operator_secret:
            raise NotConfigured("Finalize endpoint is not configured")
        if isinstance(credentials, str):
            credentials = [credentials]
        expected = self.operator_secret.encode("utf-8")
        if not any(
            hmac.compare_digest(candidate.encode("utf-8"), expected)
            for candidate in credentials or ()
            if candidate
        ):
            raise Unauthorized("Unauthorized")

    async def finalize_due(self, credentials: str | Iterable[str] | None) -> SweepReport:
        self.authorize_operator(credentials)
        return await self.sweep()

    async def sweep(self) -> SweepReport:
        """
        Hard delete every account whose grace period has elapsed.

        Pages are fetched and processed one at a time. A failure to list a
        page propagates (UserStoreError); per-user failures are collected.
        """
        now = self.clock()
        report = SweepReport(grace_period_days=self.grace_period_days)
        page = 1

        logger.info("Starting account deletion sweep", now=now.isoformat(), page_size=self.page_size)

        while True:
            users = await self.users.list_users(page, self.page_size)
            report.scanned_users += len(users)

            for user in users:
                state = resolve_deletion_state(user.metadata, now)
                if not isinstance(state, Due):
                    continue
                await self._finalize_user(user, report)

            if len(users) < self.page_size:
                break
            page += 1

        logger.info(
            "Account deletion sweep completed",
            scanned_users=report.scanned_users,
            due_users=report.due_users,
            deleted_users=report.deleted_users,
            email_sent=report.email_sent,
            error_count=len(report.errors),
        )
        return report

    async def _finalize_user(self, user: UserAccount, report: SweepReport) -> None:
        report.due_users += 1
        report.due_user_ids.append(user.id)

        try:
            await self.users.delete_user(user.id)
        except Exception as e:
            logger.error("Hard delete failed", user_id=user.id, error=str(e))
            report.errors.append(SweepError(user_id=user.id, step=STEP_DELETE_USER, error=str(e)))
            return

        report.deleted_users += 1
        report.deleted_user_ids.append(user.id)
        logger.warning("Account permanently deleted", user_id=user.id)

        if not user.email:
            return

        try:
            result = await self.notifier.send(
                user.email,
                NotificationKind.DELETION_COMPLETED,
                {"deleted_at": format_timestamp(self.clock())},
            )
        except Exception as e:
            logger.error("Deletion completed email failed", user_id=user.id, error=str(e))
            report.errors.append(SweepError(user_id=user.id, step=STEP_SEND_EMAIL, error=str(e)))
            return

        if result.configured and result.sent:
            report.email_sent += 1
