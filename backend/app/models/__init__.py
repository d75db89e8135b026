from app.models.base import Base
from app.models.kv_entry import KvEntry

__all__ = [
    "Base",
    "KvEntry",
]
