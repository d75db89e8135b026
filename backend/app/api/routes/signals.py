from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db
from app.schemas.signal import ScoreFactors, ScoreOut, SignalListOut, SignalOut
from app.services.scoring import compute_signal_score, confidence_bucket
from app.services.signals import generate_active_signals, get_signal, list_signals

router = APIRouter()
settings = get_settings()

SPORT_PATTERN = "^(NFL|NBA|MLB|NHL|NCAAF|NCAAB)$"
MARKET_TYPE_PATTERN = "^(Moneyline|Spread|Total|Player Props)$"
CONFIDENCE_PATTERN = "^(low|medium|high)$"


@router.get("", response_model=SignalListOut)
async def get_signal_feed(
    sport: str | None = Query(None, pattern=SPORT_PATTERN),
    market_type: str | None = Query(None, pattern=MARKET_TYPE_PATTERN),
    min_confidence: str | None = Query(None, pattern=CONFIDENCE_PATTERN),
    db: AsyncSession = Depends(get_db),
) -> SignalListOut:
    signals = await list_signals(db, sport=sport, market_type=market_type, min_confidence=min_confidence)
    return SignalListOut(signals=signals)


@router.post("/generate", response_model=SignalListOut)
async def generate_signals(
    count: int = Query(settings.generate_default_count, ge=1, le=settings.generate_max_count),
    db: AsyncSession = Depends(get_db),
) -> SignalListOut:
    return SignalListOut(signals=await generate_active_signals(db, count=count))


@router.post("/score", response_model=ScoreOut)
async def score_signal(factors: ScoreFactors) -> ScoreOut:
    score = compute_signal_score(**factors.model_dump())
    return ScoreOut(score=score, confidence=confidence_bucket(score))


@router.get("/{signal_id}", response_model=SignalOut)
async def get_signal_detail(signal_id: str, db: AsyncSession = Depends(get_db)) -> SignalOut:
    signal = await get_signal(db, signal_id)
    if signal is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Signal not found")
    return SignalOut(signal=signal)
