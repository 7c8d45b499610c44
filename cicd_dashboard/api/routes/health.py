import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from cicd_dashboard.core.logging import SERVICE_NAME

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Liveness check. 503 once SIGTERM has been received."""
    if getattr(request.app.state, "shutting_down", False):
        return JSONResponse(status_code=503, content={"status": "shutting_down", "service": SERVICE_NAME})
    return {"status": "healthy", "service": SERVICE_NAME}


@router.get("/ready")
async def readiness_check(request: Request):
    """Ready when the refresh timer is running and the last user-visible load succeeded.

    Periodic failures never set the snapshot error, so a flapping Build API
    does not flip readiness until someone refreshes.
    """
    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        return JSONResponse(
            status_code=503,
            content={"status": "degraded", "checks": {"scheduler": False, "build_api": False}},
        )

    snapshot = scheduler.snapshot
    checks = {"scheduler": scheduler.running, "build_api": snapshot.error is None}
    if not checks["build_api"]:
        logger.warning("readiness_degraded", error=snapshot.error)

    ready = all(checks.values())
    return JSONResponse(
        status_code=200 if ready else 503,
        content={
            "status": "ready" if ready else "degraded",
            "checks": checks,
            "last_updated": snapshot.last_updated.isoformat(),
        },
    )
