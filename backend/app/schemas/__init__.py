from app.schemas.alert import AlertListOut, AlertOut, AlertRule, AlertRuleIn
from app.schemas.analytics import AnalyticsOut, PerformancePoint
from app.schemas.market import BookQuote, MarketDetailOut, MarketState, OddsHistoryPoint
from app.schemas.signal import (
    BestLine,
    ConsensusLine,
    InitOut,
    OddsMovement,
    ScoreFactors,
    ScoreOut,
    Signal,
    SignalListOut,
    SignalOut,
)

__all__ = [
    "AlertListOut",
    "AlertOut",
    "AlertRule",
    "AlertRuleIn",
    "AnalyticsOut",
    "PerformancePoint",
    "BookQuote",
    "MarketDetailOut",
    "MarketState",
    "OddsHistoryPoint",
    "BestLine",
    "ConsensusLine",
    "InitOut",
    "OddsMovement",
    "ScoreFactors",
    "ScoreOut",
    "Signal",
    "SignalListOut",
    "SignalOut",
]
