"""
Health check endpoints for monitoring and orchestration (K8s, Docker, etc.)

- /health: Basic liveness check (always returns 200)
- /health/live: Alias for orchestrators that prefer that name
- /health/ready: Readiness check (database reachable when one is configured)
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bakery.api.dependencies import get_session

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic liveness probe: 200 while the process is up."""
    return {"status": "ok", "service": "bakery-reservations"}


@router.get("/health/live")
async def health_check_live():
    return {"status": "ok", "service": "bakery-reservations"}


@router.get("/health/ready")
async def health_check_ready(session: AsyncSession | None = Depends(get_session)):
    """
    Readiness probe.

    In-memory mode has no external store, so it is always ready. Otherwise
    the database must answer a trivial query; 503 if it does not.
    """
    health_status = {"status": "ready", "checks": {}}

    if session is None:
        health_status["checks"]["database"] = "in_memory"
        return health_status

    try:
        result = await session.execute(text("SELECT 1"))
        result.scalar()
        health_status["checks"]["database"] = "healthy"
    except SQLAlchemyError as e:
        logger.error("Readiness check: Database unhealthy", exc_info=e)
        health_status["status"] = "not_ready"
        health_status["checks"]["database"] = "unhealthy"
        return JSONResponse(status_code=503, content=health_status)

    return health_status
