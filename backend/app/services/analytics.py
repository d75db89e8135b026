import random
from collections import Counter
from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from app.schemas.analytics import AnalyticsOut, PerformancePoint
from app.schemas.signal import Signal
from app.services.signals import load_signals

PERFORMANCE_HISTORY_DAYS = 30

# Headline figures are fixed; there is no graded bet history behind them.
HEADLINE_WIN_RATE = 0.582
HEADLINE_AVG_CLV = 3.2
HEADLINE_ROI = 8.7

_default_rng = random.Random()


def build_performance_history(
    rng: random.Random | None = None,
    now: datetime | None = None,
    days: int = PERFORMANCE_HISTORY_DAYS,
) -> list[PerformancePoint]:
    rng = rng or _default_rng
    now = now or datetime.now(UTC)
    return [
        PerformancePoint(
            date=now - timedelta(days=i),
            win_rate=0.55 + rng.random() * 0.15,
            avg_clv=2 + rng.random() * 3,
            signal_count=rng.randrange(5, 25),
        )
        for i in range(days, -1, -1)
    ]


def summarize_signals(
    signals: list[Signal],
    rng: random.Random | None = None,
    now: datetime | None = None,
) -> AnalyticsOut:
    by_confidence = {"high": 0, "medium": 0, "low": 0}
    for signal in signals:
        by_confidence[signal.confidence] += 1

    avg_score = sum(signal.signal_score for signal in signals) / len(signals) if signals else 0.0
    return AnalyticsOut(
        total_signals=len(signals),
        by_sport=dict(Counter(signal.sport for signal in signals)),
        by_confidence=by_confidence,
        performance_history=build_performance_history(rng=rng, now=now),
        avg_signal_score=avg_score,
        win_rate=HEADLINE_WIN_RATE,
        avg_clv=HEADLINE_AVG_CLV,
        roi=HEADLINE_ROI,
    )


async def build_analytics(
    db: AsyncSession,
    rng: random.Random | None = None,
    now: datetime | None = None,
) -> AnalyticsOut:
    return summarize_signals(await load_signals(db), rng=rng, now=now)
