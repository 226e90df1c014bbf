"""
FastAPI main application with DDD architecture
"""

import logging
from contextlib import asynccontextmanager
from datetime import timedelta

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.core.clock import Clock
from app.core.config import settings
from app.api.router import api_router
from app.application.use_cases.cancel_idle_orders import IdleOrderReaper
from app.db.database import SessionLocal, ping
from app.domain.exceptions import CommerceError
from app.infrastructure.cache.promo_cache import PromoCache

# Import all ORM models to ensure relationships are resolved
import app.infrastructure.orm  # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="[%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup - migrations handle database schema
    logger.info(f"Starting {settings.PROJECT_NAME} API...")
    app.state.promo_cache = PromoCache(
        ttl_seconds=settings.PROMO_CACHE_TTL_SECONDS,
        max_entries=settings.PROMO_CACHE_MAX_ENTRIES,
    )
    app.state.reaper = IdleOrderReaper(
        SessionLocal,
        Clock(),
        stale_after=timedelta(seconds=settings.PENDING_ORDER_TIMEOUT_SECONDS),
    )
    if settings.REAPER_ENABLED and not settings.TESTING:
        app.state.reaper.start(settings.REAPER_INTERVAL_SECONDS)
    yield
    # Shutdown
    await app.state.reaper.stop()
    logger.info(f"Shutting down {settings.PROJECT_NAME} API...")


# Create FastAPI app
app = FastAPI(
    title=f"{settings.PROJECT_NAME} API",
    description=settings.DESCRIPTION,
    version=settings.VERSION,
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_HOSTS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CommerceError)
async def commerce_error_handler(request: Request, exc: CommerceError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, **exc.details},
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Internal error"})


# Include API routes
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
async def root():
    """Root endpoint"""
    return {"message": f"{settings.PROJECT_NAME} API", "version": settings.VERSION}


@app.get("/health")
async def health_check():
    """Health check endpoint that verifies database connectivity"""
    db_status = "healthy" if ping() else "unhealthy"
    return {
        "status": "healthy" if db_status == "healthy" else "degraded",
        "database": db_status,
        "version": settings.VERSION,
    }


if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
