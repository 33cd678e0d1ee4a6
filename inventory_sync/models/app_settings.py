"""ShipHero credential storage model."""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class AppSettings(Base, TimestampMixin):
    """Single-row table holding the active ShipHero refresh token and warehouse."""

    __tablename__ = "app_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    shiphero_refresh_token: Mapped[str] = mapped_column(String(4000), nullable=False)
    shiphero_warehouse_id: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<AppSettings(id={self.id}, warehouse='{self.shiphero_warehouse_id}')>"
