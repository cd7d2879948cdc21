"""
Escala FastAPI Application - Main entry point.

Escala is the backend of a church volunteer-scheduling app. Leaders confirm
volunteer attendance by scanning QR codes during an event's live window, and
a scheduled sweep marks everyone left unconfirmed as absent once the event
has ended.

API endpoints live under /api/v1/:
- /api/v1/auth/*               - Login and current user
- /api/v1/attendance/*         - QR confirmation and the absence sweep
- /api/v1/events/*             - Active event, scheduling, attendance lists
- /api/v1/notifications/*      - In-app notifications
- /api/v1/push-subscriptions   - Browser push registration
- /api/health                  - Health check
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from escala.core.config import settings
from escala.core.logging import setup_logging
from escala.db.base import init_db
from escala.schemas.common import HealthResponse
from escala.api.v1 import api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    setup_logging()
    # Note: schema migrations are not managed here; tables are created if missing
    await init_db()
    logger.info(f"{settings.APP_NAME} started (env={settings.APP_ENV}, tz={settings.EVENT_TIMEZONE})")
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="Church volunteer scheduling and attendance API.",
    lifespan=lifespan,
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/api/health", response_model=HealthResponse, tags=["health"])
async def health_check():
    """Health check endpoint."""
    return HealthResponse(code=200, message="API is healthy.")


app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    if settings.DEBUG:
        return JSONResponse(
            status_code=500,
            content={"detail": str(exc)}
        )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "escala.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
