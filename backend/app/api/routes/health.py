from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db

router = APIRouter()


@router.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@router.get("/health/ready")
async def health_ready(request: Request, db: AsyncSession = Depends(get_db)) -> dict:
    redis_ok = False
    db_ok = False

    redis = getattr(request.app.state, "redis", None)
    if redis is not None:
        try:
            pong = await redis.ping()
            redis_ok = bool(pong)
        except Exception:
            redis_ok = False

    try:
        await db.execute(text("SELECT 1"))
        db_ok = True
    except Exception:
        db_ok = False

    # Redis only backs rate limiting and the poller lock, so the API stays usable without it.
    status = "ok" if db_ok else "unavailable"
    return {"status": status, "db": db_ok, "redis": redis_ok}


@router.get("/health/flags")
async def health_flags() -> dict:
    s = get_settings()
    return {
        "app_env": s.app_env,
        "mock_market_count": s.mock_market_count,
        "init_signal_count": s.init_signal_count,
        "signal_volatility_threshold": s.signal_volatility_threshold,
        "poll_interval_seconds": s.poll_interval_seconds,
        "signal_retention_minutes": s.signal_retention_minutes,
    }
