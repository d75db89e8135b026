import logging
import math
import random
from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.schemas.market import MarketState
from app.schemas.signal import BestLine, ConsensusLine, OddsMovement, Signal
from app.services import kv_store
from app.services.scoring import (
    confidence_bucket,
    consensus_odds,
    format_american_odds,
    market_signal_score,
    min_score_for_confidence,
    risk_label,
    volatility_label,
)

logger = logging.getLogger(__name__)
settings = get_settings()

MARKET_KEY_PREFIX = "market:"
SIGNAL_KEY_PREFIX = "signal:"

SPORTS = ("NFL", "NBA", "MLB", "NHL", "NCAAF", "NCAAB")
MARKET_TYPES = ("Moneyline", "Spread", "Total", "Player Props")
TEAMS: dict[str, tuple[str, ...]] = {
    "NFL": ("Chiefs", "Bills", "49ers", "Cowboys", "Eagles", "Ravens"),
    "NBA": ("Lakers", "Celtics", "Warriors", "Nets", "Bucks", "Nuggets"),
    "MLB": ("Yankees", "Dodgers", "Astros", "Braves", "Red Sox", "Mets"),
    "NHL": ("Maple Leafs", "Lightning", "Avalanche", "Rangers", "Bruins", "Oilers"),
    "NCAAF": ("Alabama", "Georgia", "Ohio State", "Michigan", "Texas", "USC"),
    "NCAAB": ("Duke", "Kansas", "UNC", "Kentucky", "Gonzaga", "Villanova"),
}
BOOKS = ("DraftKings", "FanDuel", "BetMGM", "Caesars", "PointsBet")
DEFAULT_LAST_ODDS: dict[str, int] = {"DraftKings": -110, "FanDuel": -108, "BetMGM": -112}

TRIGGERS = (
    "Odds movement over 15 points in 5 minutes",
    "AI probability divergence from market consensus exceeds 8%",
    "Cross-book arbitrage opportunity detected",
    "Sharp money indicators across 3+ books",
    "Historical pattern match with 73% win rate",
)
EXPLANATIONS = (
    "Market overreaction to public sentiment. Our AI model shows the line has moved too far.",
    "Early sharp action from known professional groups. This typically precedes additional movement.",
    "Weather conditions favor the under. Public is heavily on the over, creating value.",
    "Injury news not fully priced in by the market. Model adjusts for lineup impact.",
    "Historical matchup data suggests current line is inefficient by ~6%.",
)

ODDS_MOVEMENT_POINTS = 15
ODDS_MOVEMENT_WINDOW = "5m"

_ID_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
_default_rng = random.Random()


def market_key(market_id: str) -> str:
    return f"{MARKET_KEY_PREFIX}{market_id}"


def signal_key(signal_id: str) -> str:
    return f"{SIGNAL_KEY_PREFIX}{signal_id}"


def epoch_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def new_signal_id(rng: random.Random, now: datetime) -> str:
    suffix = "".join(rng.choice(_ID_ALPHABET) for _ in range(9))
    return f"signal-{epoch_ms(now)}-{suffix}"


def generate_signal(
    market: MarketState,
    rng: random.Random | None = None,
    now: datetime | None = None,
    volatility_threshold: float | None = None,
) -> Signal | None:
    """Fabricate a signal for a market, or None when the market is too calm."""
    rng = rng or _default_rng
    now = now or datetime.now(UTC)
    threshold = settings.signal_volatility_threshold if volatility_threshold is None else volatility_threshold
    if market.volatility < threshold:
        return None

    edge = rng.random() * 8 + 2
    score = market_signal_score(market.volatility, edge, rng.random())

    best_book = rng.choice(BOOKS)
    best_odds = -110 + rng.randrange(40)
    ai_probability = 0.5 + (rng.random() - 0.5) * 0.3
    consensus_implied = 0.5 + (rng.random() - 0.5) * 0.2

    trigger = rng.choice(TRIGGERS)
    explanation = rng.choice(EXPLANATIONS)
    minutes_since_update = max(0, math.floor((now - market.last_update).total_seconds() / 60))
    from_odds = best_odds - ODDS_MOVEMENT_POINTS

    return Signal(
        id=new_signal_id(rng, now),
        market_id=market.market_id,
        event_id=market.event_id,
        event_name=market.event_name,
        sport=market.sport,
        market_type=market.market_type,
        triggered_at=now,
        signal_score=score,
        edge=edge,
        confidence=confidence_bucket(score),
        best_line=BestLine(book=best_book, odds=best_odds, price=format_american_odds(best_odds)),
        consensus=ConsensusLine(
            implied=consensus_implied,
            odds=consensus_odds(consensus_implied),
        ),
        ai_probability=ai_probability,
        trigger=trigger,
        explanation=explanation,
        what_changed=(
            f"Line moved from {from_odds} to {best_odds} across majority of books "
            f"in last {minutes_since_update} minutes"
        ),
        risk_label=risk_label(market.volatility),
        odds_movement=OddsMovement(from_odds=from_odds, to_odds=best_odds, time_window=ODDS_MOVEMENT_WINDOW),
        volatility=volatility_label(market.volatility),
        time_to_start=rng.randrange(30, 210),
    )


def build_mock_markets(
    count: int | None = None,
    rng: random.Random | None = None,
    now: datetime | None = None,
) -> list[MarketState]:
    rng = rng or _default_rng
    now = now or datetime.now(UTC)
    total = settings.mock_market_count if count is None else count

    markets: list[MarketState] = []
    for i in range(max(0, total)):
        sport = rng.choice(SPORTS)
        sport_teams = TEAMS[sport]
        away = rng.choice(sport_teams)
        home = rng.choice([team for team in sport_teams if team != away])
        markets.append(
            MarketState(
                market_id=f"market-{i}",
                event_id=f"event-{i}",
                event_name=f"{away} @ {home}",
                sport=sport,
                market_type=rng.choice(MARKET_TYPES),
                last_odds=dict(DEFAULT_LAST_ODDS),
                implied_probability=0.5 + (rng.random() - 0.5) * 0.2,
                volatility=rng.random(),
                momentum=rng.random() * 2 - 1,
                last_update=now - timedelta(milliseconds=rng.randrange(300_000)),
                polling_cadence_ms=settings.market_polling_cadence_ms,
            )
        )
    return markets


async def load_markets(db: AsyncSession) -> list[MarketState]:
    rows = await kv_store.get_by_prefix(db, MARKET_KEY_PREFIX)
    return [MarketState.model_validate(value) for _key, value in rows]


async def load_signals(db: AsyncSession) -> list[Signal]:
    rows = await kv_store.get_by_prefix(db, SIGNAL_KEY_PREFIX)
    return [Signal.model_validate(value) for _key, value in rows]


async def initialize_mock_markets(
    db: AsyncSession,
    rng: random.Random | None = None,
    count: int | None = None,
) -> list[MarketState]:
    """Replace every stored market and signal with a fresh random market set."""
    cleared_markets = await kv_store.delete_by_prefix(db, MARKET_KEY_PREFIX)
    cleared_signals = await kv_store.delete_by_prefix(db, SIGNAL_KEY_PREFIX)

    markets = build_mock_markets(count=count, rng=rng)
    await kv_store.mset(
        db,
        {market_key(market.market_id): market.model_dump(mode="json") for market in markets},
    )
    await db.commit()
    logger.info(
        "Mock markets initialized",
        extra={
            "markets": len(markets),
            "cleared_markets": cleared_markets,
            "cleared_signals": cleared_signals,
        },
    )
    return markets


async def generate_active_signals(
    db: AsyncSession,
    count: int = 10,
    rng: random.Random | None = None,
    now: datetime | None = None,
) -> list[Signal]:
    """Try the ``count`` most volatile markets; calm ones produce nothing."""
    markets = await load_markets(db)
    markets.sort(key=lambda market: market.volatility, reverse=True)

    signals: list[Signal] = []
    for market in markets[: max(0, min(count, len(markets)))]:
        signal = generate_signal(market, rng=rng, now=now)
        if signal is None:
            continue
        signals.append(signal)
        await kv_store.set_value(db, signal_key(signal.id), signal.model_dump(mode="json"))

    await db.commit()
    logger.info(
        "Active signals generated",
        extra={"requested": count, "markets_available": len(markets), "signals_created": len(signals)},
    )
    return signals


async def seed_dashboard(
    db: AsyncSession,
    rng: random.Random | None = None,
) -> tuple[list[MarketState], list[Signal]]:
    markets = await initialize_mock_markets(db, rng=rng)
    signals = await generate_active_signals(db, count=settings.init_signal_count, rng=rng)
    return markets, signals


def filter_signals(
    signals: list[Signal],
    *,
    sport: str | None = None,
    market_type: str | None = None,
    min_confidence: str | None = None,
) -> list[Signal]:
    filtered = signals
    if sport:
        filtered = [signal for signal in filtered if signal.sport == sport]
    if market_type:
        filtered = [signal for signal in filtered if signal.market_type == market_type]
    if min_confidence:
        min_score = min_score_for_confidence(min_confidence)
        filtered = [signal for signal in filtered if signal.signal_score >= min_score]
    return sorted(filtered, key=lambda signal: (signal.signal_score, signal.triggered_at), reverse=True)


async def list_signals(
    db: AsyncSession,
    *,
    sport: str | None = None,
    market_type: str | None = None,
    min_confidence: str | None = None,
) -> list[Signal]:
    return filter_signals(
        await load_signals(db),
        sport=sport,
        market_type=market_type,
        min_confidence=min_confidence,
    )


async def get_signal(db: AsyncSession, signal_id: str) -> Signal | None:
    value = await kv_store.get_value(db, signal_key(signal_id))
    if value is None:
        return None
    return Signal.model_validate(value)


async def prune_signals(
    db: AsyncSession,
    older_than: timedelta | None = None,
    now: datetime | None = None,
) -> int:
    """Delete signals triggered before the retention cutoff."""
    age = older_than if older_than is not None else timedelta(minutes=settings.signal_retention_minutes)
    cutoff = (now or datetime.now(UTC)) - age
    stale_keys = [signal_key(signal.id) for signal in await load_signals(db) if signal.triggered_at < cutoff]
    deleted = await kv_store.mdel(db, stale_keys)
    await db.commit()
    return deleted
