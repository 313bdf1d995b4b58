"""
交易明細模型

每一筆買入、賣出都是不可變的事件，
金額欄位（單價、手續費、總額）以整數分儲存。
"""

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, BigInteger, DateTime,
    ForeignKey, Enum, func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from portfolio_ledger.database import Base
from portfolio_ledger.db_types import Quantity


class TransactionType(str, enum.Enum):
    """交易類型列舉"""
    BUY = "BUY"    # 買入
    SELL = "SELL"  # 賣出


class Transaction(Base):
    __tablename__ = "transactions"

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
    asset_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("assets.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tx_type: Mapped[TransactionType] = mapped_column(
        Enum(TransactionType), nullable=False,
    )
    date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True,
        comment="交易執行時間",
    )
    quantity: Mapped[Decimal] = mapped_column(
        Quantity(), nullable=False,
        comment="交易數量（加密貨幣支援小數）",
    )
    price_cents: Mapped[int] = mapped_column(
        BigInteger, nullable=False,
        comment="單位價格（分）",
    )
    commission_cents: Mapped[int] = mapped_column(
        BigInteger, default=0, nullable=False,
        comment="手續費（分）",
    )
    total_cents: Mapped[int] = mapped_column(
        BigInteger, nullable=False,
        comment="買入為總成本（含手續費），賣出為淨收入（扣手續費）",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(),
    )

    # 關聯
    asset = relationship("Asset", back_populates="transactions", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Transaction {self.tx_type.value} {self.asset_id} x{self.quantity}>"
