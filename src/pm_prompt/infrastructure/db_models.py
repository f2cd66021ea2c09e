"""SQLAlchemy ORM model for the prompts table.

The table is provisioned outside this service; this file is a pure Python mapping.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, Integer, Numeric, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from src.pm_common.database import Base


class PromptORM(Base):
    __tablename__ = "prompts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    creator_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    quality_score: Mapped[int] = mapped_column(Integer, nullable=False)
    token_price: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    total_usage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_revenue: Mapped[Decimal] = mapped_column(Numeric(24, 8), nullable=False, default=0)
    is_hybrid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    parent_id1: Mapped[str | None] = mapped_column(String(36))
    parent_id2: Mapped[str | None] = mapped_column(String(36))
    contract_address: Mapped[str | None] = mapped_column(String(66))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("NOW()")
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("NOW()")
    )
