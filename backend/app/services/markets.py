import math
import random
from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from app.schemas.market import BookQuote, MarketDetailOut, MarketState, OddsHistoryPoint
from app.services import kv_store
from app.services.signals import market_key

HISTORY_MINUTES = 60

# (book, odds, seconds since last update)
BOOK_QUOTES: tuple[tuple[str, int, int], ...] = (
    ("DraftKings", -110, 120),
    ("FanDuel", -108, 90),
    ("BetMGM", -112, 180),
    ("Caesars", -109, 150),
    ("PointsBet", -115, 240),
)

_default_rng = random.Random()


async def get_market(db: AsyncSession, market_id: str) -> MarketState | None:
    value = await kv_store.get_value(db, market_key(market_id))
    if value is None:
        return None
    return MarketState.model_validate(value)


def build_odds_history(
    rng: random.Random | None = None,
    now: datetime | None = None,
    minutes: int = HISTORY_MINUTES,
) -> list[OddsHistoryPoint]:
    """One point per minute, oldest first, ending at ``now``."""
    rng = rng or _default_rng
    now = now or datetime.now(UTC)

    def _noise() -> float:
        return (rng.random() - 0.5) * 2

    history: list[OddsHistoryPoint] = []
    for i in range(minutes, -1, -1):
        history.append(
            OddsHistoryPoint(
                timestamp=now - timedelta(minutes=i),
                consensus=-110 + math.sin(i / 10) * 5 + _noise(),
                ai_probability=-108 + math.cos(i / 8) * 4 + _noise(),
                best=-112 + math.sin(i / 12) * 6 + _noise(),
            )
        )
    return history


def build_book_quotes(now: datetime | None = None) -> list[BookQuote]:
    now = now or datetime.now(UTC)
    return [
        BookQuote(name=name, odds=odds, updated=now - timedelta(seconds=age_seconds))
        for name, odds, age_seconds in BOOK_QUOTES
    ]


async def get_market_detail(
    db: AsyncSession,
    market_id: str,
    rng: random.Random | None = None,
) -> MarketDetailOut | None:
    market = await get_market(db, market_id)
    if market is None:
        return None
    now = datetime.now(UTC)
    return MarketDetailOut(
        market=market,
        history=build_odds_history(rng=rng, now=now),
        books=build_book_quotes(now=now),
    )
