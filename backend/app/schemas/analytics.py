from datetime import datetime

from pydantic import BaseModel


class PerformancePoint(BaseModel):
    date: datetime
    win_rate: float
    avg_clv: float
    signal_count: int


class AnalyticsOut(BaseModel):
    total_signals: int
    by_sport: dict[str, int]
    by_confidence: dict[str, int]
    performance_history: list[PerformancePoint]
    avg_signal_score: float
    win_rate: float
    avg_clv: float
    roi: float
