"""
AdLink server.

Short links with a timed advertisement interstitial, tenant dashboards for
content providers and advertisers, and an admin counter audit.
"""

import time
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from adlink.common.cache import redis_client
from adlink.common.config import get_settings
from adlink.common.database import close_db, create_tables, init_db
from adlink.common.exceptions import AdLinkError
from adlink.common.logger import clear_log_context, get_logger, log_context
from adlink.common.session import SessionContext
from adlink.common.utils import generate_request_id
from adlink.gateway.registry import GatewayRegistry
from adlink.schemas.response import ErrorResponse
from adlink.server.middleware.metrics import MetricsMiddleware, metrics_endpoint
from adlink.server.routers import admin, auth, categories, dashboard, gateway, gateway_api, health
from adlink.server.services.tenant_service import drop_cached_roles

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()

    # Startup
    logger.info(
        "Starting AdLink server",
        version=settings.app_version,
        env=settings.env,
    )

    await init_db()
    if settings.debug:
        await create_tables()

    if settings.redis.enabled:
        await redis_client.connect()
    else:
        logger.info("Redis disabled, caching off")

    logger.info("AdLink server started successfully")

    yield

    # Shutdown
    logger.info("Shutting down AdLink server")
    app.state.gateway_registry.close()
    await app.state.sessions.close()
    await redis_client.close()
    await close_db()
    logger.info("AdLink server stopped")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="AdLink",
        description="Short links with an ad interstitial",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    # Per-application state, torn down in lifespan
    app.state.sessions = SessionContext(
        ttl_seconds=settings.auth.session_ttl_seconds,
        max_sessions=settings.auth.max_sessions,
    )
    app.state.sessions.subscribe(drop_cached_roles)
    app.state.gateway_registry = GatewayRegistry(settings.gateway)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if settings.monitoring.enabled:
        app.add_middleware(MetricsMiddleware)
        app.add_api_route("/metrics", metrics_endpoint, methods=["GET"], tags=["monitoring"])

    # Request logging middleware
    @app.middleware("http")
    async def logging_middleware(request: Request, call_next: Any) -> Any:
        """Log all requests with timing."""
        request_id = generate_request_id()
        log_context(request_id=request_id)

        start_time = time.perf_counter()

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000

        logger.info(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2),
        )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"

        clear_log_context()

        return response

    # Exception handlers
    @app.exception_handler(AdLinkError)
    async def adlink_error_handler(
        request: Request,
        exc: AdLinkError,
    ) -> JSONResponse:
        """Render AdLink errors with their own status code."""
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "AdLink error",
            error=exc.__class__.__name__,
            message=exc.message,
            details=exc.details,
            status_code=exc.status_code,
        )

        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=exc.__class__.__name__,
                message=exc.message,
                details=exc.details,
            ).model_dump(),
        )

    @app.exception_handler(Exception)
    async def general_error_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Handle unexpected errors."""
        logger.error(
            "Unexpected error",
            error=str(exc),
            error_type=exc.__class__.__name__,
        )

        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="InternalServerError",
                message="An unexpected error occurred",
            ).model_dump(),
        )

    # Include routers
    app.include_router(health.router, tags=["health"])
    app.include_router(gateway.router, prefix="/g", tags=["gateway"])
    app.include_router(gateway_api.router, prefix="/api/v1/gateway", tags=["gateway"])
    app.include_router(dashboard.router, prefix="/api/v1/dashboard", tags=["dashboard"])
    app.include_router(categories.router, prefix="/api/v1/categories", tags=["categories"])
    app.include_router(admin.router, prefix="/api/v1/admin", tags=["admin"])
    app.include_router(auth.router, prefix="/api/v1/auth", tags=["auth"])

    return app


# Create app instance
app = create_app()


def main() -> None:
    """Run the server using uvicorn."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "adlink.server.main:app",
        host=settings.server.host,
        port=settings.server.port,
        workers=settings.server.workers,
        reload=settings.server.reload,
        log_level="info" if not settings.debug else "debug",
    )


if __name__ == "__main__":
    main()
