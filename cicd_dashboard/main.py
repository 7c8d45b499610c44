"""CI/CD Build Dashboard: FastAPI application entry point."""

import signal
import uuid
from contextlib import asynccontextmanager

# configure_structlog must run before the package modules below create their loggers
from cicd_dashboard.core.config import get_settings
from cicd_dashboard.core.logging import configure_structlog

_boot_settings = get_settings()
configure_structlog(
    log_level="DEBUG" if _boot_settings.debug else "INFO",
    json_logs=not _boot_settings.debug,
)

import structlog

from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cicd_dashboard.api.routes import api_router
from cicd_dashboard.integrations.build_api import BuildApiClient
from cicd_dashboard.middleware.correlation import setup_correlation_middleware, get_correlation_id
from cicd_dashboard.services.refresh_scheduler import RefreshScheduler

logger = structlog.get_logger(__name__)

DEV_UI_ORIGIN = "http://localhost:4200"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """One Build API client and one refresh scheduler for the process.

    The scheduler starts polling immediately; on shutdown pending cycles are
    cancelled before the HTTP client is closed.
    """
    app.state.shutting_down = False

    def handle_sigterm(signum, frame):
        # /api/health answers 503 from here on
        app.state.shutting_down = True
        logger.info("sigterm_received", action="draining")

    signal.signal(signal.SIGTERM, handle_sigterm)

    settings = get_settings()
    logger.info(
        "startup_begin",
        app_name=settings.app_name,
        debug=settings.debug,
        build_api_url=settings.build_api_url,
        refresh_interval_seconds=settings.refresh_interval_seconds,
    )

    async with BuildApiClient() as gateway:
        scheduler = RefreshScheduler(gateway=gateway)
        app.state.scheduler = scheduler
        scheduler.start()

        yield

        logger.info("shutdown_begin")
        await scheduler.stop()
        app.state.scheduler = None

    logger.info("shutdown_complete")


def _error_response(request: Request, status_code: int, detail, event: str, **log_fields) -> JSONResponse:
    """Log under a fresh debug_id and return it to the UI with the detail."""
    debug_id = str(uuid.uuid4())
    logger.error(
        event,
        status_code=status_code,
        debug_id=debug_id,
        correlation_id=get_correlation_id(),
        path=request.url.path,
        method=request.method,
        **log_fields,
    )
    return JSONResponse(status_code=status_code, content={"detail": detail, "debug_id": debug_id})


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return _error_response(request, exc.status_code, exc.detail, "http_exception", http_detail=exc.detail)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Unhandled errors: traceback goes to the log, the UI only sees a generic 500."""
    return _error_response(
        request,
        500,
        "Internal server error",
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=exc,
    )


def create_app(use_lifespan: bool = True) -> FastAPI:
    """Build the FastAPI application.

    Args:
        use_lifespan: False leaves app.state.scheduler unset so callers can
            attach their own scheduler (tests do)
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Latest build status per repository, kept fresh by polling the build-tracking API",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan if use_lifespan else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=sorted({settings.frontend_url, DEV_UI_ORIGIN}),
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    # Added last so it wraps CORS and tags every request first
    setup_correlation_middleware(app)

    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(api_router, prefix="/api")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "cicd_dashboard.main:app",
        host="0.0.0.0",
        port=8000,
        reload=_boot_settings.debug,
    )
