"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.v1.router import router as v1_router
from src.core.config import APP_VERSION, get_settings
from src.core.database import close_database, get_db_session, init_database
from src.core.exceptions import setup_exception_handlers
from src.core.health import HealthCheckService, HealthStatus
from src.core.logging import setup_logging, setup_request_logging
from src.core.redis_client import close_redis_client, get_redis_client

logger = logging.getLogger("consent_registry")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:  # noqa: ARG001
    """Application lifespan handler for startup and shutdown."""
    settings = get_settings()
    init_database(settings)
    logger.info("Application started", extra={"env": settings.app_env})
    yield
    logger.info("Application shutting down")
    await close_database()
    close_redis_client()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    # Setup structured logging first
    setup_logging(settings)

    app = FastAPI(
        title="Cookie Consent Registry API",
        description=(
            "Cookie catalogs, website registry and an auditable visitor consent "
            "log with retention enforcement"
        ),
        version=APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Setup request logging middleware (must be added before CORS)
    setup_request_logging(app)

    # Banners call the capture endpoint from customer sites
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Retry-After", "X-Request-ID"],
    )

    setup_exception_handlers(app)

    # Health check endpoints (no auth required)
    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, str]:
        """Simple health check endpoint for basic liveness probes."""
        return {"status": "healthy"}

    @app.get("/health/live", tags=["health"])
    async def liveness_check() -> dict[str, str]:
        """Liveness probe: 200 while the process is running."""
        return {"status": "healthy"}

    @app.get("/health/ready", tags=["health"])
    async def readiness_check(
        db_session: AsyncSession = Depends(get_db_session),
    ) -> Response:
        """Readiness probe.

        Returns 200 if the database is reachable, 503 otherwise.
        """
        health_service = HealthCheckService(
            db_session=db_session,
            settings=settings,
            redis_client=get_redis_client(),
        )
        result = await health_service.check_readiness()

        status_code = 200 if result.status != HealthStatus.UNHEALTHY else 503
        return JSONResponse(content=result.to_dict(), status_code=status_code)

    @app.get("/health/detailed", tags=["health"])
    async def detailed_health_check(
        db_session: AsyncSession = Depends(get_db_session),
    ) -> dict[str, Any]:
        """Status of every dependency, including the retention queue."""
        health_service = HealthCheckService(
            db_session=db_session,
            settings=settings,
            redis_client=get_redis_client(),
        )
        result = await health_service.check_all()
        return result.to_dict()

    app.include_router(v1_router)

    return app


# Create application instance
app = create_app()


def run() -> None:
    """Run the application with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_level=settings.app_log_level.lower(),
    )


if __name__ == "__main__":
    run()
