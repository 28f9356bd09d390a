"""
Main FastAPI application entry point.

Endpoints outside the versioned API:
    GET /                 banner
    GET /health           liveness + database ping (200 / 503)
    GET /health/detailed  per-dependency checks with timings
    GET /metrics          phrase counts, pool settings and enabled features
"""

import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from phrasebook.api import api_router
from phrasebook.core.config import settings
from phrasebook.core.env_validation import validate_or_raise
from phrasebook.core.logging import get_logger, setup_logging
from phrasebook.db.deps import DBSession
from phrasebook.db.session import check_db_health, close_db, init_db
from phrasebook.models.phrase import PROCESSING_CATEGORY
from phrasebook.services.phrase_queries import create_phrase_query_service

APP_VERSION = "0.1.0"

setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: validate the environment, then verify (and in development
    create) the database. Shutdown: dispose of the connection pool.
    """
    logger.info(
        "starting_application",
        app_name=settings.APP_NAME,
        environment=settings.APP_ENV,
        version=APP_VERSION,
    )

    # Raises in production, warns elsewhere
    validate_or_raise()
    await init_db()

    yield

    logger.info("shutting_down_application")
    await close_db()


app = FastAPI(
    title=settings.APP_NAME,
    description="Save phrases, let an AI model categorize them, and rediscover them later",
    version=APP_VERSION,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)
app.add_middleware(GZipMiddleware, minimum_size=1000)

app.include_router(api_router, prefix=settings.API_V1_PREFIX)


# ================================
# Health & Metrics
# ================================

@app.get("/health", tags=["health"])
async def health_check() -> JSONResponse:
    """Liveness plus a database ping."""
    db_healthy = await check_db_health()

    return JSONResponse(
        status_code=200 if db_healthy else 503,
        content={
            "status": "healthy" if db_healthy else "unhealthy",
            "app_name": settings.APP_NAME,
            "environment": settings.APP_ENV,
            "version": APP_VERSION,
            "database": "connected" if db_healthy else "disconnected",
        },
    )


@app.get("/health/detailed", tags=["health"])
async def detailed_health_check() -> JSONResponse:
    """
    Health of each dependency with how long its check took.

    Only the database is probed. The broker is reported from configuration
    and never contacted; a dead broker shows up as 503 on phrase submission.
    """
    started = time.perf_counter()
    checks: Dict[str, Dict[str, Any]] = {}

    db_started = time.perf_counter()
    db_healthy = await check_db_health()
    checks["database"] = {
        "status": "connected" if db_healthy else "disconnected",
        "duration_ms": round((time.perf_counter() - db_started) * 1000, 2),
    }

    broker_scheme = settings.CELERY_BROKER_URL.split("://", 1)[0]
    checks["broker"] = {"status": "configured", "scheme": broker_scheme}

    return JSONResponse(
        status_code=200 if db_healthy else 503,
        content={
            "status": "healthy" if db_healthy else "unhealthy",
            "version": APP_VERSION,
            "checks": checks,
            "total_duration_ms": round((time.perf_counter() - started) * 1000, 2),
        },
    )


@app.get("/metrics", tags=["health"])
async def metrics(db: DBSession) -> Dict[str, Any]:
    """Application, database and feature snapshot for dashboards."""
    database: Dict[str, Any] = {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
    }

    queries = create_phrase_query_service(db)
    try:
        database["total_phrases"] = await queries.count_phrases()
        histogram = await queries.category_histogram()
        database["processing_phrases"] = histogram.get(PROCESSING_CATEGORY, 0)
        dialect = queries.dialect_name
    except Exception as e:
        logger.warning("metrics_query_failed", error=str(e))
        database["error"] = str(e)
        dialect = None

    return {
        "app": {
            "name": settings.APP_NAME,
            "environment": settings.APP_ENV,
            "version": APP_VERSION,
        },
        "database": database,
        "features": {
            "default_ai_model": settings.DEFAULT_AI_MODEL,
            "available_ai_models": len(settings.available_ai_models),
            "full_text_search": dialect == "postgresql",
            "activity_timezone": settings.ACTIVITY_TIMEZONE,
        },
    }


@app.get("/", tags=["root"])
async def root() -> JSONResponse:
    return JSONResponse(
        content={
            "message": f"Welcome to {settings.APP_NAME} API",
            "version": APP_VERSION,
            "docs": "/docs" if settings.DEBUG else "Documentation disabled in production",
        }
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Turn anything the routes did not map into a generic 500."""
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
            }
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "phrasebook.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
