"""JSON blob storage addressed by string keys.

Callers own the transaction: nothing here commits. Deletes go through the
session so the identity map never hands back a removed entry.
"""
from typing import Any, Iterable, Mapping

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.kv_entry import KvEntry


async def get_value(db: AsyncSession, key: str) -> Any | None:
    entry = await db.get(KvEntry, key)
    return entry.value if entry is not None else None


async def set_value(db: AsyncSession, key: str, value: Any) -> None:
    await db.merge(KvEntry(key=key, value=value))


async def delete_value(db: AsyncSession, key: str) -> bool:
    entry = await db.get(KvEntry, key)
    if entry is None:
        return False
    await db.delete(entry)
    await db.flush()
    return True


async def mget(db: AsyncSession, keys: Iterable[str]) -> list[Any | None]:
    key_list = list(keys)
    if not key_list:
        return []
    stmt = select(KvEntry).where(KvEntry.key.in_(key_list))
    found = {entry.key: entry.value for entry in (await db.execute(stmt)).scalars().all()}
    return [found.get(key) for key in key_list]


async def mset(db: AsyncSession, items: Mapping[str, Any]) -> None:
    for key, value in items.items():
        await db.merge(KvEntry(key=key, value=value))


async def mdel(db: AsyncSession, keys: Iterable[str]) -> int:
    key_list = list(keys)
    if not key_list:
        return 0
    stmt = select(KvEntry).where(KvEntry.key.in_(key_list))
    entries = (await db.execute(stmt)).scalars().all()
    for entry in entries:
        await db.delete(entry)
    await db.flush()
    return len(entries)


async def get_by_prefix(db: AsyncSession, prefix: str) -> list[tuple[str, Any]]:
    stmt = (
        select(KvEntry)
        .where(KvEntry.key.startswith(prefix, autoescape=True))
        .order_by(KvEntry.key.asc())
    )
    return [(entry.key, entry.value) for entry in (await db.execute(stmt)).scalars().all()]


async def delete_by_prefix(db: AsyncSession, prefix: str) -> int:
    stmt = select(KvEntry).where(KvEntry.key.startswith(prefix, autoescape=True))
    entries = (await db.execute(stmt)).scalars().all()
    for entry in entries:
        await db.delete(entry)
    await db.flush()
    return len(entries)
