"""
FastAPI application for the progression service.
"""
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import TimeoutError as SQLTimeoutError

from progression import __version__
from progression.api import api_router
from progression.api.deps import close_redis
from progression.api.routes import health
from progression.core.config import settings
from progression.core.logging import setup_logging
from progression.db.session import engine
from progression.gamification.catalog import DEFAULT_CATALOG
from progression.middleware.request_id import RequestIdMiddleware

setup_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    catalog = app.state.catalog
    logger.info(
        "Progression service starting",
        version=__version__,
        debug=settings.api_debug,
        achievements=len(catalog),
        active_achievements=len(catalog.active()),
    )

    yield

    await close_redis()
    await engine.dispose()
    logger.info("Progression service stopped")


app = FastAPI(
    title=settings.app_name,
    description="Read Master achievements, XP and levels",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Loaded once; routes read it through the get_catalog dependency
app.state.catalog = DEFAULT_CATALOG

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIdMiddleware)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Log anything the routes did not handle and answer with a generic error."""
    # Pool exhaustion surfaces as sqlalchemy's TimeoutError
    pool_exhausted = isinstance(exc, SQLTimeoutError) or "QueuePool" in str(exc)

    logger.error(
        "Unhandled exception",
        method=request.method,
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
        pool_exhausted=pool_exhausted,
    )

    if pool_exhausted:
        return JSONResponse(
            status_code=503,
            content={
                "detail": "Service temporarily unavailable due to high load. Please try again in a moment.",
                "error_type": "connection_pool_exhausted",
            },
        )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


app.include_router(health.router, tags=["Health"])
app.include_router(api_router, prefix="/api")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "progression.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
    )
