"""
verify.py
---------
Purpose:
    Extract caller credentials from incoming requests.

Notes:
    - End-user access tokens are resolved to a user by the user store
      (Supabase Auth), not verified locally.
    - Tokens come from the ``Authorization: Bearer`` header, or from an
      ``access_token`` / ``accessToken`` field in a JSON body.
    - The operator secret for scheduled jobs comes from the ``x-cron-secret``
      header or the ``secret`` query parameter.
"""

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

OPERATOR_SECRET_HEADER = "x-cron-secret"
OPERATOR_SECRET_QUERY = "secret"

_security = HTTPBearer(auto_error=False)


async def _token_from_body(request: Request) -> str | None:
    if "application/json" not in request.headers.get("content-type", ""):
        return None
    try:
        body = await request.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    token = body.get("access_token") or body.get("accessToken")
    return token if isinstance(token, str) and token else None


async def access_token_dependency(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_security),
) -> str | None:
    if credentials and credentials.credentials:
        return credentials.credentials
    return await _token_from_body(request)


def operator_secret_dependency(request: Request) -> list[str]:
    """Every operator secret the caller supplied; header first, then query."""
    candidates = (
        request.headers.get(OPERATOR_SECRET_HEADER),
        request.query_params.get(OPERATOR_SECRET_QUERY),
    )
    return [c for c in candidates if c]
