from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.schemas.market import MarketDetailOut
from app.services.markets import get_market_detail

router = APIRouter()


@router.get("/{market_id}", response_model=MarketDetailOut)
async def get_market(market_id: str, db: AsyncSession = Depends(get_db)) -> MarketDetailOut:
    detail = await get_market_detail(db, market_id)
    if detail is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Market not found")
    return detail
