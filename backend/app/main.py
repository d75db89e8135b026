import logging
from typing import Optional
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from app.api.router import api_router
from app.core.config import get_settings
from app.core.database import create_all_tables, engine
from app.core.logging import setup_logging
from app.core.rate_limit import RedisRateLimitMiddleware
from app.core.request_logging import RequestLoggingMiddleware

settings = get_settings()

if settings.sentry_dsn:
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.app_env,
        traces_sample_rate=settings.sentry_traces_sample_rate,
        integrations=[FastApiIntegration(), SqlalchemyIntegration()],
        send_default_pii=False,
    )
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info(
        "Starting Signalry API",
        extra={
            "app_env": settings.app_env,
            "database_url_source": settings.resolved_database_url_source,
            "api_prefix": settings.api_prefix,
        },
    )
    if settings.auto_create_tables:
        await create_all_tables(engine)
        logger.info("Database tables ensured")

    redis: Optional[Redis] = None
    try:
        redis = Redis.from_url(settings.redis_url, decode_responses=True)
        await redis.ping()
        app.state.redis = redis
        logger.info("Redis connected")
    except Exception:
        app.state.redis = None
        logger.exception("Redis connection failed; rate limiting disabled")

    yield

    if redis is not None:
        await redis.aclose()
    await engine.dispose()


app = FastAPI(title=settings.app_name, lifespan=lifespan)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", extra={"method": request.method, "path": request.url.path})
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    expose_headers=["Content-Length"],
    max_age=settings.cors_max_age_seconds,
)
app.add_middleware(RedisRateLimitMiddleware, requests_per_minute=settings.rate_limit_requests_per_minute)
app.add_middleware(RequestLoggingMiddleware)

app.include_router(api_router, prefix=settings.api_prefix)
