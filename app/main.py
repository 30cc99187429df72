"""
RentMatch: FastAPI application.

- structlog JSON logging, level taken from ``LOG_LEVEL``
- lifespan: database warm-up, optional Redis match cache
- per-request context middleware (request id, timeout, access log)
- ``/health`` liveness and ``/health/deep`` readiness probes
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from app.config import get_settings
from app.database import async_session_factory, engine
from app.services.match_cache import close_redis, connect_redis, get_redis

REQUEST_ID_HEADER = "X-Request-ID"

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        logging.getLevelName(get_settings().LOG_LEVEL)
    ),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger("rentmatch")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    logger.info("startup_begin", environment=settings.ENVIRONMENT)

    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))
    logger.info("database_ready")

    # Matching works without the cache
    try:
        await connect_redis()
    except Exception:
        logger.exception("redis_connect_failed", note="match cache disabled")
        await close_redis()

    yield

    logger.info("shutdown_begin")
    await close_redis()
    await engine.dispose()
    logger.info("shutdown_complete")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id, bound it by a timeout and log the outcome.

    The id is taken from the ``X-Request-ID`` header when the caller sends
    one, bound into the structlog context for every log line emitted while
    the request runs, and echoed back on the response.
    """

    def __init__(self, app, timeout_seconds: float) -> None:
        super().__init__(app)
        self.timeout_seconds = timeout_seconds

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        start = time.perf_counter()
        try:
            try:
                response = await asyncio.wait_for(call_next(request), timeout=self.timeout_seconds)
            except asyncio.TimeoutError:
                logger.warning("request_timeout", timeout=self.timeout_seconds)
                response = JSONResponse(status_code=504, content={"detail": "Request timed out"})

            response.headers[REQUEST_ID_HEADER] = request_id
            logger.info(
                "request_handled",
                status=response.status_code,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )
            return response
        finally:
            structlog.contextvars.clear_contextvars()


settings = get_settings()

app = FastAPI(
    title="RentMatch",
    description="Tenant preference completeness and property matching",
    version="1.0.0",
    lifespan=lifespan,
    docs_url=None if settings.is_production else "/docs",
    redoc_url=None if settings.is_production else "/redoc",
)

app.add_middleware(RequestContextMiddleware, timeout_seconds=settings.REQUEST_TIMEOUT_SECONDS)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[REQUEST_ID_HEADER],
)


@app.get("/health", tags=["health"])
async def health_liveness() -> dict:
    return {"status": "healthy"}


@app.get("/health/deep", tags=["health"])
async def health_deep() -> dict:
    """Readiness: the database must answer; the cache may be disabled."""
    result: dict = {"status": "healthy", "database": "connected"}

    try:
        async with async_session_factory() as session:
            await session.execute(text("SELECT 1"))
    except Exception as exc:
        logger.error("health_db_failure", error=str(exc))
        result["database"] = f"error: {exc}"
        result["status"] = "degraded"

    redis = get_redis()
    if redis is None:
        result["cache"] = "disabled"
    else:
        try:
            await redis.ping()
            result["cache"] = "connected"
        except Exception as exc:
            logger.warning("health_cache_failure", error=str(exc))
            result["cache"] = f"error: {exc}"

    return result


from app.api.router import router as api_router  # noqa: E402

app.include_router(api_router, prefix="/api/v1")
