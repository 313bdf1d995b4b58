"""
當前持倉模型

與資產一對一，由每筆買賣交易更新數量。
數量以 Quantity 型別儲存（SQLite 上為定點字串），支援加密貨幣的小數單位，且永遠不為負數。
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, DateTime,
    ForeignKey, CheckConstraint, func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from portfolio_ledger.database import Base
from portfolio_ledger.db_types import Quantity


class Holding(Base):
    __tablename__ = "holdings"

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_holding_quantity_non_negative"),
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
    asset_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("assets.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    quantity: Mapped[Decimal] = mapped_column(
        Quantity(), default=Decimal("0"), nullable=False,
        comment="總持有數量",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    # 關聯
    asset = relationship("Asset", back_populates="holding", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Holding {self.asset_id} qty={self.quantity}>"
