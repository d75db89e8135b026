from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.schemas.alert import AlertListOut, AlertOut, AlertRuleIn
from app.services.alerts import create_alert_rule, list_alert_rules

router = APIRouter()

USER_ID_PATTERN = "^[A-Za-z0-9_.@-]{1,128}$"


@router.get("/{user_id}", response_model=AlertListOut)
async def get_alert_rules(
    user_id: str = Path(..., pattern=USER_ID_PATTERN),
    db: AsyncSession = Depends(get_db),
) -> AlertListOut:
    return AlertListOut(alerts=await list_alert_rules(db, user_id))


@router.post("/{user_id}", response_model=AlertOut)
async def add_alert_rule(
    payload: AlertRuleIn,
    user_id: str = Path(..., pattern=USER_ID_PATTERN),
    db: AsyncSession = Depends(get_db),
) -> AlertOut:
    return AlertOut(alert=await create_alert_rule(db, user_id, payload))
