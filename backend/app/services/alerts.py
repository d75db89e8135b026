import logging
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.schemas.alert import AlertRule, AlertRuleIn
from app.services import kv_store
from app.services.signals import epoch_ms

logger = logging.getLogger(__name__)


def alerts_key(user_id: str) -> str:
    return f"user:{user_id}:alerts"


async def list_alert_rules(db: AsyncSession, user_id: str) -> list[AlertRule]:
    stored = await kv_store.get_value(db, alerts_key(user_id))
    return [AlertRule.model_validate(item) for item in stored or []]


async def create_alert_rule(
    db: AsyncSession,
    user_id: str,
    payload: AlertRuleIn,
    now: datetime | None = None,
) -> AlertRule:
    now = now or datetime.now(UTC)
    stored = list(await kv_store.get_value(db, alerts_key(user_id)) or [])

    # Server-assigned fields win over anything the client sent under the same names.
    rule = AlertRule.model_validate(
        {**payload.model_dump(exclude_unset=True), "id": f"alert-{epoch_ms(now)}", "created_at": now}
    )
    stored.append(rule.model_dump(mode="json", exclude_unset=True))
    await kv_store.set_value(db, alerts_key(user_id), stored)
    await db.commit()

    logger.info("Alert rule created", extra={"user_id": user_id, "alert_id": rule.id, "rules": len(stored)})
    return rule
