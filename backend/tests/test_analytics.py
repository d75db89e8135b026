import random
from datetime import UTC, datetime, timedelta

from httpx import AsyncClient

from app.services.analytics import build_performance_history, summarize_signals

API = "/api/v1"
NOW = datetime(2026, 10, 19, 18, 0, tzinfo=UTC)


def test_performance_history_covers_thirty_days_oldest_first() -> None:
    history = build_performance_history(rng=random.Random(3), now=NOW)

    assert len(history) == 31
    assert history[0].date == NOW - timedelta(days=30)
    assert history[-1].date == NOW
    for point in history:
        assert 0.55 <= point.win_rate <= 0.70
        assert 2 <= point.avg_clv <= 5
        assert 5 <= point.signal_count < 25


def test_summary_without_signals() -> None:
    summary = summarize_signals([], rng=random.Random(0), now=NOW)

    assert summary.total_signals == 0
    assert summary.by_sport == {}
    assert summary.by_confidence == {"high": 0, "medium": 0, "low": 0}
    assert summary.avg_signal_score == 0.0
    assert (summary.win_rate, summary.avg_clv, summary.roi) == (0.582, 3.2, 8.7)


def test_summary_counts_by_sport_and_confidence(make_signal) -> None:
    signals = [
        make_signal("a", sport="NBA", score=80),
        make_signal("b", sport="NBA", score=60),
        make_signal("c", sport="NFL", score=40),
    ]

    summary = summarize_signals(signals, rng=random.Random(0), now=NOW)

    assert summary.total_signals == 3
    assert summary.by_sport == {"NBA": 2, "NFL": 1}
    assert summary.by_confidence == {"high": 1, "medium": 1, "low": 1}
    assert summary.avg_signal_score == 60.0


async def test_analytics_endpoint(async_client: AsyncClient, make_signal, store_records):
    await store_records(make_signal("s1", sport="MLB", score=90), make_signal("s2", sport="MLB", score=70))

    resp = await async_client.get(f"{API}/analytics")
    assert resp.status_code == 200
    body = resp.json()
    assert body["total_signals"] == 2
    assert body["by_sport"] == {"MLB": 2}
    assert body["by_confidence"] == {"high": 1, "medium": 1, "low": 0}
    assert body["avg_signal_score"] == 80.0
    assert len(body["performance_history"]) == 31
    assert body["roi"] == 8.7
