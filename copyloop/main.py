"""
FastAPI backend for CopyLoop.

Content rating and style-learning service: captures human and AI ratings,
mines content patterns, and turns them into style recommendations and
resolved prompt templates.

This main file handles app initialization and router mounting.
All endpoints are organized in the routers/ directory.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables
env_path = Path(__file__).parent.parent / '.env'
if env_path.exists():
    load_dotenv(env_path)

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from .config import settings
from .database import check_database_health, init_db
from .dependencies import get_template_resolver, limiter
from .exceptions import (
    ConfigurationError,
    CopyLoopError,
    LLMError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from .routers import evaluations, learning, ratings, templates

# =============================================================================
# Configuration
# =============================================================================

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# =============================================================================
# Lifespan Event Handler
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan event handler for FastAPI application.
    Creates tables and warms the template cache.
    """
    init_db()
    logger.info("Database initialized")

    get_template_resolver()

    yield  # Application runs here

    logger.info("Application shutting down")

# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="CopyLoop",
    description="Content rating, pattern learning and style recommendations",
    version="1.0.0",
    lifespan=lifespan
)

# =============================================================================
# Error Handlers
# =============================================================================

# First matching base class wins.
ERROR_STATUS = {
    ValidationError: 422,
    NotFoundError: 404,
    StoreError: 500,
    LLMError: 502,
    ConfigurationError: 500,
}


def status_for(exc: CopyLoopError) -> int:
    for exc_type, status in ERROR_STATUS.items():
        if isinstance(exc, exc_type):
            return status
    return 500


@app.exception_handler(CopyLoopError)
async def copyloop_error_handler(request: Request, exc: CopyLoopError):
    status = status_for(exc)
    request_id = getattr(request.state, "request_id", None)
    if status >= 500:
        logger.error(f"[{request_id}] {type(exc).__name__}: {exc}")
    else:
        logger.info(f"[{request_id}] {type(exc).__name__}: {exc}")

    return JSONResponse(
        status_code=status,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


async def custom_rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Rate limit exceeded: 429 with a Retry-After header."""
    detail = str(exc.detail)
    if "hour" in detail.lower():
        retry_after = 3600
    elif "second" in detail.lower():
        retry_after = 1
    else:
        retry_after = 60

    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limit_exceeded",
            "detail": detail,
            "retry_after_seconds": retry_after,
        },
        headers={"Retry-After": str(retry_after)}
    )


app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, custom_rate_limit_handler)
if settings.is_testing:
    logger.info("Rate limiting disabled (test mode)")

# CORS
origins = settings.allowed_origins.split(',') if settings.allowed_origins != '*' else ['*']

if origins == ['*'] and settings.is_production:
    logger.warning(
        "CORS allows ALL origins (*) in production. "
        "Set COPYLOOP_ALLOWED_ORIGINS to specific domains."
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=origins != ['*'],
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request ID middleware
@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """
    Add unique request ID to each request for tracing.
    Enables debugging by tracking requests through logs.
    """
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response

# =============================================================================
# Mount Routers
# =============================================================================

app.include_router(ratings.router)
app.include_router(evaluations.router)
app.include_router(learning.router)
app.include_router(templates.router)

# =============================================================================
# Health Check Endpoint
# =============================================================================

@app.get("/health", tags=["health"])
async def health_check():
    """
    Health check endpoint.

    Reports database connectivity and which evaluator providers have keys.
    """
    db_health = check_database_health()
    health_data = {
        "status": "healthy" if db_health.get("database_connected") else "degraded",
        "timestamp": datetime.utcnow().isoformat(),
        "environment": settings.environment,
        "dependencies": {
            "database": db_health,
            "openai_configured": bool(settings.openai_api_key),
            "anthropic_configured": bool(settings.anthropic_api_key),
            "evaluation_providers": settings.evaluation_provider_list,
        },
    }
    return health_data
