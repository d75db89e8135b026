import asyncio
import logging
import os
import random
import time
import uuid
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta

from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import AsyncSessionLocal
from app.core.logging import setup_logging
from app.services.signals import generate_active_signals, initialize_mock_markets, load_markets, prune_signals

settings = get_settings()
logger = logging.getLogger(__name__)

POLLER_LOCK_KEY = "poller:signal-generate-lock"


async def run_signal_cycle(
    db: AsyncSession,
    rng: random.Random | None = None,
    now: datetime | None = None,
) -> dict:
    now = now or datetime.now(UTC)
    markets_seeded = 0
    if not await load_markets(db):
        markets_seeded = len(await initialize_mock_markets(db, rng=rng))

    signals = await generate_active_signals(db, count=settings.poller_signal_count, rng=rng, now=now)
    pruned = await prune_signals(
        db,
        older_than=timedelta(minutes=settings.signal_retention_minutes),
        now=now,
    )
    return {
        "markets_seeded": markets_seeded,
        "signals_created": len(signals),
        "signal_ids": [signal.id for signal in signals],
        "signals_pruned": pruned,
    }


def determine_poll_interval(cycle_result: dict | None) -> int:
    def _apply_manual_override(calculated_interval: int) -> int:
        forced = os.getenv("POLL_INTERVAL_SECONDS")
        if forced:
            try:
                forced_int = max(5, int(forced))
                logger.info("Manual polling override applied", extra={"forced_seconds": forced_int})
                return forced_int
            except ValueError:
                pass
        return calculated_interval

    active_interval = max(1, settings.poll_interval_seconds)
    idle_interval = max(1, settings.poll_interval_idle_seconds)

    if not cycle_result:
        return _apply_manual_override(active_interval)

    signals_created = cycle_result.get("signals_created", 0)
    if isinstance(signals_created, int) and signals_created == 0:
        return _apply_manual_override(idle_interval)
    return _apply_manual_override(active_interval)


@asynccontextmanager
async def redis_cycle_lock(redis: Redis | None, lock_key: str, ttl_seconds: int = 55):
    if redis is None:
        yield True
        return

    lock_value = str(uuid.uuid4())
    try:
        acquired = await redis.set(lock_key, lock_value, ex=ttl_seconds, nx=True)
    except Exception:
        logger.exception("Failed to acquire redis lock")
        yield True
        return

    if not acquired:
        yield False
        return

    try:
        yield True
    finally:
        try:
            current = await redis.get(lock_key)
            if current == lock_value:
                await redis.delete(lock_key)
        except Exception:
            logger.exception("Failed to release redis lock")


async def main() -> None:
    setup_logging()
    logger.info(
        "Starting signal poller",
        extra={
            "active_interval_seconds": settings.poll_interval_seconds,
            "idle_interval_seconds": settings.poll_interval_idle_seconds,
            "signals_per_cycle": settings.poller_signal_count,
            "signal_retention_minutes": settings.signal_retention_minutes,
        },
    )

    redis: Redis | None = None
    try:
        redis = Redis.from_url(settings.redis_url, decode_responses=True)
        await redis.ping()
    except Exception:
        logger.exception("Redis unavailable, poller running without cycle lock")
        redis = None

    while True:
        cycle_id = str(uuid.uuid4())
        cycle_start = time.monotonic()
        cycle_result: dict | None = None
        try:
            async with redis_cycle_lock(redis, POLLER_LOCK_KEY) as acquired:
                if acquired:
                    async with AsyncSessionLocal() as db:
                        cycle_result = await run_signal_cycle(db)
                    logger.info(
                        "Signal cycle complete",
                        extra={
                            "cycle_id": cycle_id,
                            "markets_seeded": cycle_result["markets_seeded"],
                            "signals_created": cycle_result["signals_created"],
                            "signals_pruned": cycle_result["signals_pruned"],
                        },
                    )
                else:
                    logger.info("Skipping cycle because lock is held", extra={"cycle_id": cycle_id})
        except Exception:
            logger.exception("Signal cycle failed", extra={"cycle_id": cycle_id})

        target_interval = determine_poll_interval(cycle_result)
        sleep_seconds = max(0.0, target_interval - (time.monotonic() - cycle_start))
        await asyncio.sleep(sleep_seconds)


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
