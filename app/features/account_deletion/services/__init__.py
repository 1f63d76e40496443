"""
Service layer for the account deletion feature.

``build_account_deletion_service`` selects the durable or in-memory user
store once, at process startup.
"""

from app.config import Settings
from app.features.account_deletion.repository import (
    InMemoryUserRepository,
    SupabaseUserRepository,
    UserRepository,
)
from app.infrastructure.observability.logging import get_logger

from .deletion_service import AccountDeletionService
from .notification_service import (
    NotificationError,
    NotificationKind,
    NotificationSender,
    ResendNotificationSender,
)

logger = get_logger(__name__)

__all__ = [
    "AccountDeletionService",
    "NotificationError",
    "NotificationKind",
    "NotificationSender",
    "ResendNotificationSender",
    "build_account_deletion_service",
    "build_user_repository",
]


def build_user_repository(settings: Settings) -> UserRepository:
    if settings.supabase_configured():
        return SupabaseUserRepository(
            settings.supabase_auth_url(),
            settings.SUPABASE_SERVICE_ROLE_KEY,
            timeout=settings.SUPABASE_HTTP_TIMEOUT_SECONDS,
        )

    logger.warning("Supabase not configured, using in-memory user store (not durable)")
    return InMemoryUserRepository()


def build_account_deletion_service(
    settings: Settings, users: UserRepository | None = None
) -> AccountDeletionService:
    notifier = ResendNotificationSender(
        settings.RESEND_API_KEY,
        settings.ACCOUNT_DELETION_FROM_EMAIL,
        app_name=settings.ACCOUNT_DELETION_APP_NAME,
        api_url=settings.RESEND_API_URL,
    )
    return AccountDeletionService(
        users if users is not None else build_user_repository(settings),
        notifier,
        grace_period_days=settings.ACCOUNT_DELETION_GRACE_PERIOD_DAYS,
        page_size=settings.ACCOUNT_DELETION_PAGE_SIZE,
        operator_secret=settings.ACCOUNT_DELETION_CRON_SECRET,
    )
