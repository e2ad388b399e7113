"""Main application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from .core import BaseError, get_settings, setup_logging
from .infrastructure.database import engine, create_schema
from .deps import SessionDep
from .api.v1.api import api_v1_router
from .api.v1.middleware import (
    base_error_handler,
    unhandled_error_handler,
    validation_exception_handler,
)

# Rate limiting
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

settings = get_settings()
logger = logging.getLogger(__name__)

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    enabled=settings.RATE_LIMIT_ENABLED,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    setup_logging(settings.LOG_LEVEL)
    async with engine.begin() as conn:
        await create_schema(conn)
    logger.info("Schema ready, serving links under %s", settings.PUBLIC_BASE_URL)

    yield

    # Shutdown
    await engine.dispose()


# Create FastAPI app
app = FastAPI(
    title="Credibro API",
    description="Referral-lead platform for financial advisors",
    version="1.0.0",
    lifespan=lifespan
)

# Attach rate-limiter
app.state.limiter = limiter

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"]
)

# Rate limiting
@app.exception_handler(RateLimitExceeded)
async def ratelimit_handler(request: Request, exc: RateLimitExceeded):
    return PlainTextResponse("Too many requests", status_code=429)

app.add_middleware(SlowAPIMiddleware)

# Exception handling
app.add_exception_handler(BaseError, base_error_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_error_handler)

# Include v1 API with all endpoints
app.include_router(api_v1_router, prefix="/api/v1")


# Health check
@app.get("/healthz")
async def healthz(sess: SessionDep):
    """Health check endpoint."""
    status = {"db": "ok"}

    try:
        await sess.scalar(select(1))
    except SQLAlchemyError:
        logger.exception("Health check could not reach the database")
        status["db"] = "error"

    return status


# Root endpoint
@app.get("/")
async def root():
    """API root."""
    return {
        "message": "Welcome to Credibro API",
        "docs": "/docs",
        "health": "/healthz"
    }
