"""Database models for the inventory sync service."""

from .base import Base, TimestampMixin, utcnow
from .app_settings import AppSettings
from .inventory import InventoryRecordMixin, QueryInventoryRecord, SnapshotInventoryRecord

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "utcnow",
    # Credentials
    "AppSettings",
    # Inventory caches
    "InventoryRecordMixin",
    "QueryInventoryRecord",
    "SnapshotInventoryRecord",
]
