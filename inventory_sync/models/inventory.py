"""Inventory cache models, one table per ingestion method."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, utcnow


class InventoryRecordMixin:
    """Flat (sku, bin, quantity) fact row.

    (sku, inventory_bin) is not unique: duplicates reported upstream are kept.
    """

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sku: Mapped[str] = mapped_column(String(255), nullable=False)
    inventory_bin: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__}(sku='{self.sku}', "
            f"bin='{self.inventory_bin}', qty={self.quantity})>"
        )


class QueryInventoryRecord(Base, InventoryRecordMixin):
    """Rows written by the paginated query pipeline."""

    __tablename__ = "inventory_query_cache"


class SnapshotInventoryRecord(Base, InventoryRecordMixin):
    """Rows written by the snapshot pipeline."""

    __tablename__ = "inventory_snapshot_cache"
