"""
Main application entry point for the bucket-list API.

This module creates the FastAPI application, configures logging and
CORS, renders every failure as a ``{success: false, error}`` envelope,
initializes the login rate limiter with a Redis backend and includes the
authentication, user and destination routers.

Run it with::

    uvicorn main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi_limiter import FastAPILimiter
from fakeredis.aioredis import FakeRedis
import redis.asyncio as redis
from starlette.exceptions import HTTPException as StarletteHTTPException

from bucketlist.database import engine
from bucketlist import models, destinations
from bucketlist.auth import router as auth_router
from bucketlist.users import router as users_router
from bucketlist.core import get_settings
from bucketlist.logging_config import setup_logging

settings = get_settings()
setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Creates missing tables and initializes the rate limiter with the
    Redis backend, falling back to an in-process FakeRedis when Redis is
    unreachable.
    """
    models.Base.metadata.create_all(bind=engine)
    redis_client = redis.from_url(
        settings.REDIS_URL, encoding="utf-8", decode_responses=True
    )
    try:
        await FastAPILimiter.init(redis_client)
    except Exception:
        logger.warning("Redis unavailable at %s, using FakeRedis", settings.REDIS_URL)
        await FastAPILimiter.init(FakeRedis(decode_responses=True))
    yield
    await FastAPILimiter.close()


# Initialize FastAPI application
app = FastAPI(title="Travel Bucket List API", lifespan=lifespan)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render HTTP errors raised by routes and services as an envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report the first schema violation as a 400 envelope."""
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error["loc"] if part != "body")
    message = f"{location}: {error['msg']}" if location else error["msg"]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "error": message},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Log unexpected failures and hide their details from clients."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": "Server error"},
    )


# Include routers for application areas
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(destinations.router)


@app.get("/")
def root():
    """
    Root endpoint for the API.

    Returns:
        dict: JSON message directing users to the Swagger UI.
    """
    return {"msg": "Travel Bucket List API. Visit /docs for Swagger UI"}
