"""
CachedRecord SQLAlchemy model.
"""
from datetime import date, datetime
from typing import Optional

from sqlalchemy import Date, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from elurinfo.database.connection import Base


class CachedRecord(Base):
    """
    One cached upstream payload.

    All categories share this table. Avalanche, mountain, municipal and
    generic records are replaced by key (and valid_date for forecasts);
    snow-science rows are appended and form the per-area history.
    """

    __tablename__ = "cached_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    key: Mapped[str] = mapped_column(String(255), nullable=False)
    payload: Mapped[str] = mapped_column(Text, nullable=False)
    valid_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    issue_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    last_update: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    expires_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("idx_cached_records_category_key", "category", "key"),
        Index("idx_cached_records_category_last_update", "category", "last_update"),
        Index("idx_cached_records_category_valid_date", "category", "valid_date"),
        Index("idx_cached_records_expires_at", "expires_at"),
    )

    def __repr__(self) -> str:
        return f"<CachedRecord(id={self.id}, category='{self.category}', key='{self.key}')>"
