# app/db/helpers.py
"""
Query helpers over the shared pool.

psycopg errors are logged and re-raised as ``DatabaseError`` so routers can
map them like any other upstream failure.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import psycopg

from app.db.pool import db_pool
from app.errors import UpstreamError
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class DatabaseError(UpstreamError):
    """A query against the evaluation store failed."""

    def __init__(self, message: str, operation: str = "unknown", recoverable: bool = True):
        super().__init__(message, recoverable=recoverable)
        self.operation = operation


@asynccontextmanager
async def _borrow(connection: psycopg.AsyncConnection | None) -> AsyncIterator[psycopg.AsyncConnection]:
    if connection is not None:
        yield connection
        return
    async with db_pool.connection() as conn:
        yield conn


async def fetch_all(
    query: str, params: tuple = (), *, connection: psycopg.AsyncConnection | None = None
) -> list[dict[str, Any]]:
    """Run ``query`` and return every row as a dict."""
    try:
        async with _borrow(connection) as conn:
            cursor = await conn.execute(query, params)
            return await cursor.fetchall()
    except psycopg.Error as e:
        logger.error("Database query failed", operation="fetch_all", query=query[:100], error=str(e))
        raise DatabaseError(f"Query failed: {e}", operation="fetch_all") from e


async def execute_query(
    query: str, params: tuple = (), *, connection: psycopg.AsyncConnection | None = None
) -> int:
    """Run a write statement and return the affected row count."""
    try:
        async with _borrow(connection) as conn:
            cursor = await conn.execute(query, params)
            return cursor.rowcount
    except psycopg.Error as e:
        logger.error("Database statement failed", operation="execute", query=query[:100], error=str(e))
        raise DatabaseError(f"Query failed: {e}", operation="execute") from e
