from fastapi import APIRouter

from app.api.routes import (
    alerts,
    analytics,
    dashboard,
    health,
    markets,
    signals,
)

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(dashboard.router, tags=["dashboard"])
api_router.include_router(signals.router, prefix="/signals", tags=["signals"])
api_router.include_router(markets.router, prefix="/markets", tags=["markets"])
api_router.include_router(alerts.router, prefix="/alerts", tags=["alerts"])
api_router.include_router(analytics.router, prefix="/analytics", tags=["analytics"])
