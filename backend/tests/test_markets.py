import random
from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from app.services.markets import build_book_quotes, build_odds_history, get_market, get_market_detail

NOW = datetime(2026, 10, 19, 18, 0, tzinfo=UTC)


def test_odds_history_runs_oldest_first_one_point_per_minute() -> None:
    history = build_odds_history(rng=random.Random(6), now=NOW)

    assert len(history) == 61
    assert history[0].timestamp == NOW - timedelta(minutes=60)
    assert history[-1].timestamp == NOW
    assert all(later.timestamp - earlier.timestamp == timedelta(minutes=1) for earlier, later in zip(history, history[1:]))


def test_odds_history_stays_near_the_base_lines() -> None:
    for point in build_odds_history(rng=random.Random(6), now=NOW):
        assert -116 <= point.consensus <= -104
        assert -113 <= point.ai_probability <= -103
        assert -119 <= point.best <= -105


def test_book_quotes_ages() -> None:
    quotes = build_book_quotes(now=NOW)

    assert [(quote.name, quote.odds) for quote in quotes] == [
        ("DraftKings", -110),
        ("FanDuel", -108),
        ("BetMGM", -112),
        ("Caesars", -109),
        ("PointsBet", -115),
    ]
    assert [int((NOW - quote.updated).total_seconds()) for quote in quotes] == [120, 90, 180, 150, 240]


async def test_market_detail_from_store(db_session: AsyncSession, make_market, store_records) -> None:
    await store_records(make_market(2, volatility=0.33, sport="NCAAB"))

    detail = await get_market_detail(db_session, "market-2", rng=random.Random(1))

    assert detail is not None
    assert detail.market == await get_market(db_session, "market-2")
    assert detail.history[-1].timestamp == detail.books[0].updated + timedelta(seconds=120)
    assert await get_market_detail(db_session, "market-9") is None
