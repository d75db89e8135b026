from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

ConfidenceLevel = Literal["low", "medium", "high"]
RiskLabel = Literal["low", "medium", "high"]
VolatilityLabel = Literal["stable", "normal", "high", "extreme"]


class BestLine(BaseModel):
    book: str
    odds: int
    price: str


class ConsensusLine(BaseModel):
    implied: float
    odds: int


class OddsMovement(BaseModel):
    from_odds: int
    to_odds: int
    time_window: str


class Signal(BaseModel):
    model_config = {"from_attributes": True, "populate_by_name": True}

    id: str
    market_id: str
    event_id: str
    event_name: str
    sport: str
    market_type: str
    triggered_at: datetime

    signal_score: int = Field(ge=0, le=100)
    edge: float
    confidence: ConfidenceLevel

    best_line: BestLine
    consensus: ConsensusLine
    ai_probability: float

    trigger: str
    explanation: str
    what_changed: str
    risk_label: RiskLabel

    odds_movement: OddsMovement
    volatility: VolatilityLabel
    time_to_start: int


class SignalListOut(BaseModel):
    signals: list[Signal]


class SignalOut(BaseModel):
    signal: Signal


class ScoreFactors(BaseModel):
    edge_size: float
    speed: float
    persistence: float
    market_stability: float
    historical_performance: float


class ScoreOut(BaseModel):
    score: int
    confidence: ConfidenceLevel


class InitOut(BaseModel):
    success: bool
    markets: int
    signals: int
