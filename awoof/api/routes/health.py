"""Health & Readiness Checks — liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 if database is unreachable (readiness)
    - The key-value store is reported but does not gate readiness

Design Decisions:
    - Separate liveness/readiness: Kubernetes best practice — liveness restarts,
      readiness removes from load balancer (ADR: production readiness)
    - Redis down degrades OTP and refresh flows only (they answer 503 themselves), so the
      instance stays in rotation for browsing and reporting
"""

import logging
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from awoof.infrastructure import database, redis_store

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness check. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "awoof-api",
        "version": "1.0.0",
    }


@router.get("/ready")
async def readiness_check():
    """Readiness check — database connectivity plus key-value store state."""
    db_ok = await database.db_manager.health_check() if database.db_manager else False
    kv_ok = await redis_store.kv_store.ping() if redis_store.kv_store else False
    checks = {
        "database": "healthy" if db_ok else "unavailable",
        "cache": "healthy" if kv_ok else "unavailable",
    }
    if not db_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "database_unavailable",
                "checks": checks,
            },
        )
    return {"status": "ready", "checks": checks}
