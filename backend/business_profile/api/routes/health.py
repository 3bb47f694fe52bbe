"""Health Probes — liveness and readiness of the editor API.

Invariants:
    - GET /health/ answers 200 whenever the process serves requests
    - GET /health/ready answers 503 until the database answers SELECT 1

Design Decisions:
    - database.db_manager read at call time, not import time: the lifespan (or a test)
      installs it after this module is imported
    - Open editing sessions reported on liveness: they live in process memory and are
      lost on restart, which is what an operator needs to know before restarting
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from business_profile import __version__
from business_profile.api.routes.editor import open_session_count
from business_profile.infrastructure import database

router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/")
async def liveness():
    return {
        "status": "healthy",
        "service": "business-profile-api",
        "version": __version__,
        "open_sessions": open_session_count(),
    }


@router.get("/ready")
async def readiness():
    manager = database.db_manager
    if manager is None or not await manager.health_check():
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "database_unavailable"},
        )
    return {"status": "ready", "checks": {"database": "healthy"}}
