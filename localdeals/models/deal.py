from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from localdeals.db.database import Base
from localdeals.models.base import UTCDateTime


class Deal(Base):
    __tablename__ = "deals"
    # AUTOINCREMENT keeps SQLite from handing out the id of a deleted row again
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(primary_key=True)
    store_name: Mapped[str] = mapped_column(String(255), nullable=False)
    product: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    original_price: Mapped[Optional[float]] = mapped_column(Float)
    sale_price: Mapped[float] = mapped_column(Float, nullable=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    postal_code: Mapped[str] = mapped_column(String(20), nullable=False)
    latitude: Mapped[Optional[float]] = mapped_column(Float)
    longitude: Mapped[Optional[float]] = mapped_column(Float)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    upvotes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    reports: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def savings_percent(self) -> Optional[int]:
        """折扣百分比，原價不存在或未高於售價時為 None"""
        if not self.original_price or self.original_price <= self.sale_price:
            return None
        return round((self.original_price - self.sale_price) / self.original_price * 100)

    def __repr__(self) -> str:
        return f"<Deal {self.id}:{self.store_name}:{self.product}>"
