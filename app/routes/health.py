# app/routes/health.py
"""
Liveness and readiness endpoints.
"""

import time

from fastapi import APIRouter, Request

from app.config import settings
from app.db.pool import db_health_check
from app.infrastructure.observability.logging import SERVICE_NAME

router = APIRouter(tags=["Health"])


@router.get("/healthz")
async def healthz():
    """Liveness: 200 whenever the process is serving."""
    return {"status": "ok", "service": SERVICE_NAME}


async def _database_check() -> dict:
    if not settings.database_configured():
        return {"ok": True, "mode": "in_memory"}

    started = time.time()
    try:
        health = await db_health_check()
    except Exception as e:
        return {"ok": False, "error": f"{type(e).__name__}: {e}"}

    check = {
        "ok": bool(health.get("healthy")),
        "latency_ms": round((time.time() - started) * 1000, 1),
    }
    if not check["ok"]:
        check["error"] = health.get("error", "Database unhealthy")
    return check


@router.get("/readyz")
async def readyz(request: Request):
    """
    Readiness: the database when one is configured, plus which optional
    integrations are switched on. Missing integrations are reported, not failed.
    """
    database = await _database_check()
    ranking = getattr(request.app.state, "candidate_ranking_service", None)
    return {
        "overall_ok": database["ok"],
        "checks": {
            "database": database,
            "ranking": await ranking.ranker.health_check() if ranking else None,
            "configuration": {
                "environment": settings.environment,
                "supabase_auth": settings.supabase_configured(),
                "openai": bool(settings.OPENAI_API_KEY),
                "email": settings.email_configured(),
                "finalize_endpoint": bool(settings.ACCOUNT_DELETION_CRON_SECRET),
            },
        },
        "timestamp": time.time(),
    }
