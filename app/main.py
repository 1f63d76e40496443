"""
FastAPI application with collaborator selection and pool lifecycle management.
"""

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from app.config import settings
from app.db.pool import db_pool
from app.features.account_deletion import account_deletion_router, build_account_deletion_service
from app.features.candidate_ranking import (
    build_candidate_ranking_service,
    candidate_ranking_router,
)
from app.infrastructure.observability.logging import (
    bind_request_context,
    clear_request_context,
    get_logger,
    log_request,
    setup_logging,
)
from app.routes import health

# Setup logging before creating the app
setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown with proper resource management."""

    logger.info("Application starting", environment=settings.environment, debug=settings.debug)

    if settings.database_configured():
        logger.info("Initializing database pool")
        await db_pool.initialize()

    # Collaborators are selected once here (durable vs in-memory).
    app.state.account_deletion_service = build_account_deletion_service(settings)
    app.state.candidate_ranking_service = build_candidate_ranking_service(settings)

    logger.info(
        "All services initialized successfully",
        supabase=settings.supabase_configured(),
        database=db_pool.initialized,
        email=settings.email_configured(),
        account_deletion=settings.get_account_deletion_config(),
    )

    yield

    logger.info("Application shutting down")
    try:
        await db_pool.close()
    except Exception as e:
        logger.error("Error closing database pool", error=str(e))


app = FastAPI(
    title="InterviewPilot AI",
    description="Hiring assistant backend: account deletion lifecycle and AI candidate ranking",
    version="0.1.0",
    lifespan=lifespan,
)

# Include routers
app.include_router(health.router)
app.include_router(account_deletion_router)
app.include_router(candidate_ranking_router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log HTTP requests with timing under a per-request id."""
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    bind_request_context(request_id=request_id)
    start_time = time.time()
    try:
        response = await call_next(request)
        log_request(
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.time() - start_time) * 1000, 2),
        )
    finally:
        clear_request_context()

    response.headers["x-request-id"] = request_id
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
