from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.schemas.signal import InitOut
from app.services.signals import seed_dashboard

router = APIRouter()


@router.post("/init", response_model=InitOut)
async def initialize_dashboard(db: AsyncSession = Depends(get_db)) -> InitOut:
    markets, signals = await seed_dashboard(db)
    return InitOut(success=True, markets=len(markets), signals=len(signals))
