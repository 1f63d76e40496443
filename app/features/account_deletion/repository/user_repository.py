"""
User-record store for the account deletion lifecycle.

Two implementations share the ``UserRepository`` interface:

- ``SupabaseUserRepository`` talks to the Supabase Auth admin API.
- ``InMemoryUserRepository`` keeps users in process memory. It is a
  non-durable convenience for local development and tests.

Metadata updates are merges: a key mapped to ``None`` is removed.
"""

from typing import Any, Protocol

import httpx

from app.errors import UpstreamError
from app.features.account_deletion.domain import UserAccount
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class UserStoreError(UpstreamError):
    """Raised when the user store rejects or fails a call."""

    def __init__(self, message: str, operation: str = "unknown", recoverable: bool = True):
        super().__init__(message, recoverable=recoverable)
        self.operation = operation


class UserRepository(Protocol):
    async def find_user_by_token(self, access_token: str) -> UserAccount | None: ...

    async def update_user_metadata(self, user_id: str, changes: dict[str, Any]) -> UserAccount: ...

    async def list_users(self, page: int, per_page: int) -> list[UserAccount]: ...

    async def delete_user(self, user_id: str) -> None: ...


def merge_metadata(current: dict[str, Any] | None, changes: dict[str, Any]) -> dict[str, Any]:
    merged = dict(current or {})
    for key, value in changes.items():
        if value is None:
            merged.pop(key, None)
        else:
            merged[key] = value
    return merged


def _user_from_payload(payload: dict[str, Any]) -> UserAccount:
    return UserAccount(
        id=str(payload["id"]),
        email=payload.get("email") or None,
        metadata=dict(payload.get("user_metadata") or {}),
    )


class SupabaseUserRepository:
    """User store backed by the Supabase Auth (GoTrue) admin API."""

    def __init__(
        self,
        auth_url: str,
        service_role_key: str,
        *,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.auth_url = auth_url.rstrip("/")
        self.service_role_key = service_role_key
        self.timeout = timeout
        self._client = client

    def _admin_headers(self) -> dict[str, str]:
        return {
            "apikey": self.service_role_key,
            "Authorization": f"Bearer {self.service_role_key}",
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, operation: str, **kwargs) -> httpx.Response:
        url = f"{self.auth_url}{path}"
        try:
            if self._client is not None:
                return await self._client.request(method, url, timeout=self.timeout, **kwargs)
            async with httpx.AsyncClient() as client:
                return await client.request(method, url, timeout=self.timeout, **kwargs)
        except httpx.HTTPError as e:
            logger.error("User store request failed", operation=operation, error=str(e))
            raise UserStoreError(f"User store request failed: {e}", operation=operation) from e

    async def find_user_by_token(self, access_token: str) -> UserAccount | None:
        response = await self._request(
            "GET",
            "/user",
            "find_user_by_token",
            headers={"apikey": self.service_role_key, "Authorization": f"Bearer {access_token}"},
        )

        if response.status_code in (401, 403, 404):
            return None
        if response.status_code != 200:
            raise UserStoreError(
                f"User lookup failed with status {response.status_code}",
                operation="find_user_by_token",
            )

        payload = response.json()
        if not isinstance(payload, dict) or not payload.get("id"):
            return None
        return _user_from_payload(payload)

    async def update_user_metadata(self, user_id: str, changes: dict[str, Any]) -> UserAccount:
        # GoTrue merges user_metadata and drops keys set to null.
        response = await self._request(
            "PUT",
            f"/admin/users/{user_id}",
            "update_user_metadata",
            headers=self._admin_headers(),
            json={"user_metadata": changes},
        )

        if response.status_code != 200:
            raise UserStoreError(
                f"Metadata update failed with status {response.status_code}: {response.text[:200]}",
                operation="update_user_metadata",
            )

        return _user_from_payload(response.json())

    async def list_users(self, page: int, per_page: int) -> list[UserAccount]:
        response = await self._request(
            "GET",
            "/admin/users",
            "list_users",
            headers=self._admin_headers(),
            params={"page": page, "per_page": per_page},
        )

        if response.status_code != 200:
            raise UserStoreError(
                f"Listing users failed with status {response.status_code}",
                operation="list_users",
            )

        payload = response.json()
        users = payload.get("users", []) if isinstance(payload, dict) else payload
        return [_user_from_payload(u) for u in users or [] if isinstance(u, dict) and u.get("id")]

    async def delete_user(self, user_id: str) -> None:
        response = await self._request(
            "DELETE",
            f"/admin/users/{user_id}",
            "delete_user",
            headers=self._admin_headers(),
        )

        if response.status_code not in (200, 204):
            raise UserStoreError(
                f"Deleting user failed with status {response.status_code}: {response.text[:200]}",
                operation="delete_user",
            )


class InMemoryUserRepository:
    """Process-local user store. Contents are lost on restart."""

    def __init__(self, users: list[UserAccount] | None = None, tokens: dict[str, str] | None = None):
        self._users: dict[str, UserAccount] = {u.id: u for u in users or []}
        self._tokens: dict[str, str] = dict(tokens or {})

    def add_user(self, user: UserAccount, access_token: str | None = None) -> UserAccount:
        self._users[user.id] = user
        if access_token:
            self._tokens[access_token] = user.id
        return user

    def get_user(self, user_id: str) -> UserAccount | None:
        return self._users.get(user_id)

    async def find_user_by_token(self, access_token: str) -> UserAccount | None:
        user_id = self._tokens.get(access_token)
        if user_id is None:
            return None
        return self._users.get(user_id)

    async def update_user_metadata(self, user_id: str, changes: dict[str, Any]) -> UserAccount:
        user = self._users.get(user_id)
        if user is None:
            raise UserStoreError(f"User {user_id} not found", operation="update_user_metadata")
        user.metadata = merge_metadata(user.metadata, changes)
        return user

    async def list_users(self, page: int, per_page: int) -> list[UserAccount]:
        users = list(self._users.values())
        start = (page - 1) * per_page
        return users[start : start + per_page]

    async def delete_user(self, user_id: str) -> None:
        if self._users.pop(user_id, None) is None:
            raise UserStoreError(f"User {user_id} not found", operation="delete_user")
        self._tokens = {t: uid for t, uid in self._tokens.items() if uid != user_id}
