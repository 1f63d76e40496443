"""
Account deletion notifications sent through the Resend email API.

Notifications are a best-effort side channel: callers decide what to do
with a ``NotificationError``; the deletion write it follows is already durable.
"""

from enum import StrEnum
from html import escape
from typing import Any, Protocol

import httpx

from app.errors import UpstreamError
from app.features.account_deletion.domain import NotificationResult
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class NotificationKind(StrEnum):
    DELETION_SCHEDULED = "deletion_scheduled"
    DELETION_COMPLETED = "deletion_completed"


class NotificationError(UpstreamError):
    """Raised when the email provider rejects a send."""


class NotificationSender(Protocol):
    async def send(
        self, to_address: str, kind: NotificationKind, params: dict[str, Any]
    ) -> NotificationResult: ...


def _wrap_html(paragraphs: list[str]) -> str:
    body = "\n".join(f"  <p>{escape(p)}</p>" for p in paragraphs)
    return (
        '<div style="font-family: ui-sans-serif, system-ui, sans-serif; '
        'line-height: 1.6; color: #1A1F36;">\n'
        f"{body}\n</div>"
    )


def render_notification(kind: NotificationKind, app_name: str, params: dict[str, Any]) -> tuple[str, str]:
    """Return (subject, html) for a notification kind."""
    if kind == NotificationKind.DELETION_SCHEDULED:
        days = params.get("grace_period_days")
        subject = f"{app_name}: account deletion scheduled (in {days} days)"
        html = _wrap_html(
            [
                f"We received your request to delete your {app_name} account.",
                f"Requested at: {params.get('requested_at')}",
                f"Scheduled for: {params.get('scheduled_for')}",
                "You can cancel the deletion from your account settings until the scheduled date.",
                "If you did not make this request, contact support immediately.",
            ]
        )
        return subject, html

    if kind == NotificationKind.DELETION_COMPLETED:
        subject = f"{app_name}: your account has been deleted"
        html = _wrap_html(
            [
                f"Your {app_name} account has been deleted.",
                f"Deleted at: {params.get('deleted_at')}",
                "If you did not make this request, contact support immediately.",
            ]
        )
        return subject, html

    raise ValueError(f"Unknown notification kind: {kind}")


class ResendNotificationSender:
    """Sends deletion notifications via https://resend.com."""

    def __init__(
        self,
        api_key: str | None,
        from_address: str | None,
        *,
        app_name: str = "InterviewPilot AI",
        api_url: str = "https://api.resend.com/emails",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.from_address = from_address
        self.app_name = app_name
        self.api_url = api_url
        self.timeout = timeout
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.from_address)

    async def send(
        self, to_address: str, kind: NotificationKind, params: dict[str, Any]
    ) -> NotificationResult:
        if not self.configured:
            logger.info("Email notifications not configured, skipping", kind=str(kind))
            return NotificationResult(configured=False, sent=False)

        subject, html = render_notification(kind, self.app_name, params)
        payload = {"from": self.from_address, "to": [to_address], "subject": subject, "html": html}
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}

        try:
            if self._client is not None:
                response = await self._client.post(
                    self.api_url, json=payload, headers=headers, timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.post(
                        self.api_url, json=payload, headers=headers, timeout=self.timeout
                    )
        except httpx.HTTPError as e:
            raise NotificationError(f"Resend request failed: {e}") from e

        if response.status_code >= 300:
            raise NotificationError(
                f"Resend API error: {response.status_code} {response.text[:200]}"
            )

        logger.info("Notification sent", kind=str(kind))
        return NotificationResult(configured=True, sent=True)
