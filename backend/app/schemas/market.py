from datetime import datetime

from pydantic import BaseModel, Field


class MarketState(BaseModel):
    model_config = {"from_attributes": True, "populate_by_name": True}

    market_id: str
    event_id: str
    event_name: str
    sport: str
    market_type: str

    last_odds: dict[str, int]
    implied_probability: float
    volatility: float = Field(ge=0.0, le=1.0)
    momentum: float
    last_update: datetime

    polling_cadence_ms: int


class OddsHistoryPoint(BaseModel):
    timestamp: datetime
    consensus: float
    ai_probability: float
    best: float


class BookQuote(BaseModel):
    name: str
    odds: int
    updated: datetime


class MarketDetailOut(BaseModel):
    market: MarketState
    history: list[OddsHistoryPoint]
    books: list[BookQuote]
