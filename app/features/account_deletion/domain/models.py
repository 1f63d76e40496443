"""
Domain models for the account deletion lifecycle.

The user store keeps the deletion request as two optional metadata strings.
Everything past the repository boundary works with the tagged
``DeletionState`` resolved from that pair, so the two fields can never be
read in disagreement.
"""

from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Any

REQUESTED_AT_KEY = "deletion_requested_at"
SCHEDULED_FOR_KEY = "deletion_scheduled_for"

STEP_DELETE_USER = "deleteUser"
STEP_SEND_EMAIL = "sendEmail"


@dataclass(slots=True)
class UserAccount:
    """A user record as seen through the user store."""

    id: str
    email: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Active:
    """No deletion pending."""

    name = "active"


@dataclass(frozen=True, slots=True)
class Scheduled:
    """Deletion requested and still inside the grace period."""

    requested_at: datetime
    scheduled_for: datetime

    name = "scheduled"


@dataclass(frozen=True, slots=True)
class Due:
    """Grace period elapsed; eligible for hard deletion."""

    requested_at: datetime
    scheduled_for: datetime

    name = "due"


DeletionState = Active | Scheduled | Due


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 string into an aware datetime; None when invalid."""
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def format_timestamp(value: datetime) -> str:
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


def resolve_deletion_state(metadata: dict[str, Any] | None, now: datetime) -> DeletionState:
    """
    Resolve the stored timestamp pair into a deletion state.

    Unless both timestamps parse, the state is ``Active``: malformed metadata
    must never make an account eligible for deletion. ``scheduled_for == now`` is due.
    """
    metadata = metadata or {}
    requested_at = parse_timestamp(metadata.get(REQUESTED_AT_KEY))
    scheduled_for = parse_timestamp(metadata.get(SCHEDULED_FOR_KEY))

    if requested_at is None or scheduled_for is None:
        return Active()

    if scheduled_for <= now:
        return Due(requested_at=requested_at, scheduled_for=scheduled_for)
    return Scheduled(requested_at=requested_at, scheduled_for=scheduled_for)


def describe_state(state: DeletionState) -> dict[str, Any]:
    if isinstance(state, Active):
        return {"state": state.name, "requested_at": None, "scheduled_for": None}
    return {
        "state": state.name,
        "requested_at": format_timestamp(state.requested_at),
        "scheduled_for": format_timestamp(state.scheduled_for),
    }


@dataclass(slots=True)
class NotificationResult:
    configured: bool = False
    sent: bool = False


@dataclass(slots=True)
class ScheduleResult:
    requested_at: datetime
    scheduled_for: datetime
    grace_period_days: int
    email: NotificationResult

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "requested_at": format_timestamp(self.requested_at),
            "scheduled_for": format_timestamp(self.scheduled_for),
            "grace_period_days": self.grace_period_days,
            "email": asdict(self.email),
        }


@dataclass(slots=True)
class SweepError:
    """Per-user failure recorded during a sweep."""

    user_id: str
    step: str
    error: str


@dataclass(slots=True)
class SweepReport:
    """Aggregate result of one finalization sweep."""

    grace_period_days: int
    success: bool = True
    scanned_users: int = 0
    due_users: int = 0
    deleted_users: int = 0
    email_sent: int = 0
    due_user_ids: list[str] = field(default_factory=list)
    deleted_user_ids: list[str] = field(default_factory=list)
    errors: list[SweepError] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
