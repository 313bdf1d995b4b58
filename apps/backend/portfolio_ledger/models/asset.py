"""
資產模型

用戶自行建立的投資標的，記錄目標配置比例與最新報價。
報價以整數分儲存。
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, Integer, BigInteger, DateTime, Numeric,
    ForeignKey, UniqueConstraint, func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from portfolio_ledger.database import Base


class Asset(Base):
    __tablename__ = "assets"

    # 同一用戶內，ticker 必須唯一
    __table_args__ = (
        UniqueConstraint("user_id", "ticker", name="uq_user_ticker"),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    ticker: Mapped[str] = mapped_column(
        String(20), nullable=False,
        comment="標的代碼，如 VOO, BTC",
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    category: Mapped[str] = mapped_column(
        String(20), nullable=False, default="ETF",
        comment="資產類別，如 ETF, STOCK, BOND, CRYPTO",
    )
    target_percentage: Mapped[Decimal] = mapped_column(
        Numeric(precision=7, scale=4), default=Decimal("0"), nullable=False,
        comment="目標配置比例 (0-100)",
    )
    current_price_cents: Mapped[int | None] = mapped_column(
        BigInteger, nullable=True,
        comment="最新報價（分）",
    )
    price_updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    decimal_places: Mapped[int] = mapped_column(
        Integer, default=8, nullable=False,
        comment="交易數量允許的小數位數",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(),
    )

    # 關聯
    user = relationship("User", back_populates="assets")
    holding = relationship(
        "Holding", back_populates="asset", uselist=False,
        lazy="selectin", passive_deletes=True,
    )
    transactions = relationship(
        "Transaction", back_populates="asset", passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Asset {self.ticker} target={self.target_percentage}>"
