# app/db/pool.py
"""
Async Postgres pool for the evaluation store.

Opened from the FastAPI lifespan only when SUPABASE_DB_URL is set. Without
it the app runs on in-memory stores and nothing in this module is touched.
"""

import asyncio
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from app.config import settings
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

CLOSE_TIMEOUT_SECONDS = 30.0


class DatabasePoolManager:
    """Owns the process-wide AsyncConnectionPool; open once, close once."""

    def __init__(self):
        self.pool: AsyncConnectionPool | None = None
        self._closed = False

    @property
    def initialized(self) -> bool:
        return self.pool is not None and not self._closed

    async def initialize(self) -> None:
        if self.initialized:
            logger.warning("Database pool already open")
            return
        if self._closed:
            raise RuntimeError("Database pool was closed and cannot be reopened")
        if not settings.SUPABASE_DB_URL:
            raise RuntimeError("SUPABASE_DB_URL is not configured")

        options = settings.get_db_pool_config()
        pool = AsyncConnectionPool(
            conninfo=settings.SUPABASE_DB_URL,
            open=False,
            check=AsyncConnectionPool.check_connection,
            configure=_configure_connection,
            **options,
        )

        try:
            await pool.open(wait=True)
            await _select_one(pool)
        except Exception as e:
            logger.error("Database pool failed to open", error=str(e))
            await pool.close()
            raise RuntimeError(f"Database pool initialization failed: {e}") from e

        self.pool = pool
        logger.info("Database pool open", min_size=options["min_size"], max_size=options["max_size"])

    async def close(self) -> None:
        if not self.initialized:
            return
        try:
            await asyncio.wait_for(self.pool.close(), timeout=CLOSE_TIMEOUT_SECONDS)
            logger.info("Database pool closed")
        except TimeoutError:
            logger.warning("Database pool close timed out")
        finally:
            self._closed = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[psycopg.AsyncConnection]:
        if not self.initialized:
            raise RuntimeError("Database pool not initialized")
        async with self.pool.connection() as conn:
            yield conn

    async def health_check(self) -> dict[str, Any]:
        if not self.initialized:
            return {"healthy": False, "error": "Pool not initialized", "service": "database_pool"}

        started = time.time()
        try:
            await _select_one(self.pool)
        except Exception as e:
            return {
                "healthy": False,
                "service": "database_pool",
                "error": f"{type(e).__name__}: {e}",
            }

        stats = self.pool.get_stats()
        return {
            "healthy": True,
            "service": "database_pool",
            "connection_time_ms": round((time.time() - started) * 1000, 2),
            "pool_size": stats.get("pool_size"),
            "pool_available": stats.get("pool_available"),
        }


async def _configure_connection(conn: psycopg.AsyncConnection) -> None:
    # Rows come back as dicts; statements autocommit.
    conn.row_factory = dict_row
    await conn.set_autocommit(True)
    await conn.execute(
        sql.SQL("SET application_name = {}").format(
            sql.Literal(f"interviewpilot-{settings.environment}")
        )
    )
    await conn.execute("SET timezone = 'UTC'")
    await conn.execute("SET statement_timeout = '60s'")


async def _select_one(pool: AsyncConnectionPool) -> None:
    async with pool.connection() as conn:
        cursor = await conn.execute("SELECT 1 AS ok")
        row = await cursor.fetchone()
    if not row or row["ok"] != 1:
        raise RuntimeError("Database connection test returned an unexpected result")


db_pool = DatabasePoolManager()


async def db_health_check() -> dict[str, Any]:
    return await db_pool.health_check()
