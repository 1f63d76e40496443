from datetime import UTC, datetime, timedelta

import pytest

from app.features.account_deletion.domain import NotificationResult, UserAccount
from app.features.account_deletion.repository import InMemoryUserRepository, UserStoreError
from app.features.account_deletion.services import AccountDeletionService, NotificationError

T0 = datetime(2025, 1, 1, 12, 0, 0, tzinfo=UTC)


class FrozenClock:
    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FakeNotifier:
    def __init__(self, configured: bool = True):
        self.configured = configured
        self.sent: list[tuple[str, str, dict]] = []
        self.fail_for: set[str] = set()

    async def send(self, to_address, kind, params) -> NotificationResult:
        if to_address in self.fail_for:
            raise NotificationError(f"Resend API error: 500 for {to_address}")
        if not self.configured:
            return NotificationResult(configured=False, sent=False)
        self.sent.append((to_address, str(kind), params))
        return NotificationResult(configured=True, sent=True)


class FlakyUserRepository(InMemoryUserRepository):
    """In-memory store whose hard delete fails for chosen ids."""

    def __init__(self, *args, fail_delete_for: set[str] | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fail_delete_for = fail_delete_for or set()
        self.delete_calls: list[str] = []

    async def delete_user(self, user_id: str) -> None:
        self.delete_calls.append(user_id)
        if user_id in self.fail_delete_for:
            raise UserStoreError("Database error deleting user", operation="delete_user")
        await super().delete_user(user_id)


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def users():
    repo = FlakyUserRepository()
    repo.add_user(UserAccount(id="user-123", email="user@example.com"), access_token="token-123")
    return repo


@pytest.fixture
def deletion_service(users, notifier, clock):
    return AccountDeletionService(
        users,
        notifier,
        grace_period_days=30,
        page_size=1000,
        operator_secret="cron-secret",
        clock=clock,
    )


@pytest.fixture
def apply_services():
    """Install services on app.state for the duration of a test."""
    installed = []

    def _apply(app, **services):
        for name, service in services.items():
            installed.append((app, name, getattr(app.state, name, None)))
            setattr(app.state, name, service)

    yield _apply

    for app, name, previous in reversed(installed):
        setattr(app.state, name, previous)
