import os
from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime

# Settings are cached on first use, so the test environment must be in place before app imports.
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from app.core.database import build_engine, create_all_tables, get_db
from app.main import app
from app.schemas.market import MarketState
from app.schemas.signal import BestLine, ConsensusLine, OddsMovement, Signal
from app.services import kv_store
from app.services.scoring import confidence_bucket
from app.services.signals import DEFAULT_LAST_ODDS, market_key, signal_key

FIXED_NOW = datetime(2026, 10, 19, 18, 0, tzinfo=UTC)


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """A fresh in-memory database per test."""
    engine = build_engine("sqlite+aiosqlite://")
    await create_all_tables(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """
    Session bound to the per-test engine.

    Also overrides the app's get_db dependency so that HTTP calls made
    through async_client read and write the same database.
    """
    session_factory = async_sessionmaker(bind=db_engine, class_=AsyncSession, expire_on_commit=False)
    session = session_factory()

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield session
    finally:
        app.dependency_overrides.pop(get_db, None)
        await session.close()


@pytest_asyncio.fixture
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def make_signal() -> Callable[..., Signal]:
    def _make(
        signal_id: str,
        *,
        sport: str = "NBA",
        market_type: str = "Spread",
        score: int = 60,
        triggered_at: datetime = FIXED_NOW,
        market_id: str = "market-0",
    ) -> Signal:
        return Signal(
            id=signal_id,
            market_id=market_id,
            event_id=market_id.replace("market-", "event-"),
            event_name="Lakers @ Celtics",
            sport=sport,
            market_type=market_type,
            triggered_at=triggered_at,
            signal_score=score,
            edge=4.5,
            confidence=confidence_bucket(score),
            best_line=BestLine(book="FanDuel", odds=-105, price="-105"),
            consensus=ConsensusLine(implied=0.52, odds=-108),
            ai_probability=0.56,
            trigger="Cross-book arbitrage opportunity detected",
            explanation="Historical matchup data suggests current line is inefficient by ~6%.",
            what_changed="Line moved from -120 to -105 across majority of books in last 3 minutes",
            risk_label="medium",
            odds_movement=OddsMovement(from_odds=-120, to_odds=-105, time_window="5m"),
            volatility="high",
            time_to_start=95,
        )

    return _make


@pytest.fixture
def make_market() -> Callable[..., MarketState]:
    def _make(
        index: int,
        *,
        volatility: float = 0.5,
        sport: str = "NBA",
        market_type: str = "Spread",
        last_update: datetime = FIXED_NOW,
    ) -> MarketState:
        return MarketState(
            market_id=f"market-{index}",
            event_id=f"event-{index}",
            event_name="Lakers @ Celtics",
            sport=sport,
            market_type=market_type,
            last_odds=dict(DEFAULT_LAST_ODDS),
            implied_probability=0.5,
            volatility=volatility,
            momentum=0.1,
            last_update=last_update,
            polling_cadence_ms=10000,
        )

    return _make


@pytest.fixture
def store_records(db_session: AsyncSession):
    """Write signals and markets straight into the key-value store."""

    async def _store(*records: Signal | MarketState) -> None:
        for record in records:
            if isinstance(record, Signal):
                key = signal_key(record.id)
            else:
                key = market_key(record.market_id)
            await kv_store.set_value(db_session, key, record.model_dump(mode="json"))
        await db_session.commit()

    return _store
