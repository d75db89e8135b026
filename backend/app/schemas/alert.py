from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.signal import ConfidenceLevel


class AlertRuleIn(BaseModel):
    """Rule fields are free-form; the known ones are validated, the rest pass through."""

    model_config = ConfigDict(extra="allow")

    name: str | None = Field(default=None, max_length=120)
    sport: str | None = None
    market_type: str | None = None
    min_confidence: ConfidenceLevel | None = None
    min_score: int | None = Field(default=None, ge=0, le=100)


class AlertRule(AlertRuleIn):
    id: str
    created_at: datetime


class AlertListOut(BaseModel):
    alerts: list[AlertRule]


class AlertOut(BaseModel):
    alert: AlertRule
