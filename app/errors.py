"""
Application error taxonomy.

Services raise these; routers translate them into HTTP responses using
``status_code``. Store and client specific errors subclass ``UpstreamError``.
"""

from fastapi import HTTPException


class AppError(Exception):
    """Base class for expected application errors."""

    status_code = 500

    def __init__(self, message: str, *, recoverable: bool = True):
        super().__init__(message)
        self.message = message
        self.recoverable = recoverable


class Unauthorized(AppError):
    """Identity or operator credential missing or invalid."""

    status_code = 401


class NotConfigured(AppError):
    """A required operational setting is absent."""

    status_code = 501


class ValidationError(AppError):
    """Required identifying input is missing."""

    status_code = 400


class NotFound(AppError):
    status_code = 404


class UpstreamError(AppError):
    """An external collaborator call failed."""

    status_code = 502


def to_http_exception(error: AppError) -> HTTPException:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(error, Unauthorized) else None
    return HTTPException(status_code=error.status_code, detail=error.message, headers=headers)
