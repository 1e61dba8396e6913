import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Import all models to ensure they're registered with SQLAlchemy Base
from . import models  # noqa: F401
from .cache import get_cache_stats
from .config import get_missing_env
from .database import Base, engine
from .domain.availability.router import router as availability_router
from .domain.bookings.router import router as bookings_router
from .domain.bookings.status import InvalidTransitionError
from .domain.collections.router import router as collections_router
from .domain.content.router import router as content_router
from .domain.creators.router import router as creators_router
from .domain.media.router import router as uploads_router
from .domain.payments.router import router as payments_router
from .domain.payouts.router import router as payouts_router
from .domain.price_list.router import router as price_list_router
from .domain.webhooks.router import admin_router as reconciliation_router
from .domain.webhooks.router import router as webhooks_router
from .rate_limiter import get_redis_client
from .security_headers import SecurityHeadersMiddleware

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("botocore").setLevel(logging.WARNING)

SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    if get_redis_client() is not None:
        logger.info("Redis connection established")
    else:
        logger.warning("Redis unavailable - rate limiting is in-memory and webhooks are processed inline")

    missing = get_missing_env()
    if missing:
        logger.warning(f"⚠️ Missing environment variables: {', '.join(missing)}")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Odim API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Convert 422 validation errors from HTTPBearer to 401 authentication errors
    when the issue is with the Authorization header
    """
    for error in exc.errors():
        if error.get("loc") and "authorization" in str(error.get("loc")).lower():
            logger.warning(
                f"Authentication failed for {request.url.path}: Missing or invalid Authorization header"
            )
            return JSONResponse(
                status_code=401,
                content={
                    "detail": "Not authenticated. Please provide a valid Bearer token in the Authorization header."
                },
            )

    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=422, content={"detail": exc.errors()})


@app.exception_handler(InvalidTransitionError)
async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
    logger.warning(f"🚫 {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise
    duration_ms = (time.time() - start_time) * 1000
    if response.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} - {response.status_code} ({duration_ms:.0f}ms)")
    else:
        logger.debug(f"{request.method} {request.url.path} - {response.status_code} ({duration_ms:.0f}ms)")
    return response


if SECURITY_HEADERS_ENABLED:
    app.add_middleware(SecurityHeadersMiddleware, exclude_paths=["/health"])
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")

# CORS Configuration
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "https://odim.app,https://www.odim.app,http://localhost:3000",
).split(",")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(creators_router)
app.include_router(price_list_router)
app.include_router(availability_router)
app.include_router(bookings_router)
app.include_router(content_router)
app.include_router(collections_router)
app.include_router(payments_router)
app.include_router(payouts_router)
app.include_router(uploads_router)
app.include_router(webhooks_router)
app.include_router(reconciliation_router)


@app.get("/")
def root():
    return {"message": "Odim API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}


@app.get("/health/env-check")
def env_check():
    """Report which required settings are missing, never their values"""
    missing = get_missing_env()
    return {"status": "ok" if not missing else "incomplete", "missing": missing}


@app.get("/health/redis")
async def redis_health_check():
    """Check Redis connectivity for monitoring"""
    redis_client = get_redis_client()
    if redis_client is None:
        return {"status": "unavailable", "redis": {"connected": False}}

    try:
        start_time = time.time()
        redis_client.ping()
        response_time = (time.time() - start_time) * 1000
    except Exception as e:
        return {"status": "unhealthy", "redis": {"connected": False, "error": str(e)}}

    return {
        "status": "healthy",
        "redis": {"connected": True, "response_time_ms": round(response_time, 2)},
        "cache": get_cache_stats(),
    }
