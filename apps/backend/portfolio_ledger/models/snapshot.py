"""
每日投資組合快照模型

同一用戶同一天只能有一筆快照；重新建立時明細全部刪除後重建。
SnapshotAsset 為當下各資產價值的反正規化副本，資產刪除後仍保留。
"""

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    String, Date, DateTime, Numeric, BigInteger,
    ForeignKey, UniqueConstraint, func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from portfolio_ledger.database import Base
from portfolio_ledger.db_types import Quantity


class PortfolioSnapshot(Base):
    __tablename__ = "portfolio_snapshots"

    # 同一用戶同一天只能有一筆快照
    __table_args__ = (
        UniqueConstraint("user_id", "snapshot_date", name="uq_user_snapshot_date"),
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
    snapshot_date: Mapped[date] = mapped_column(
        Date, nullable=False, index=True,
        comment="快照日期",
    )
    total_value_cents: Mapped[int] = mapped_column(
        BigInteger, default=0, nullable=False,
        comment="總資產價值（分）",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(),
    )

    # 關聯
    assets = relationship(
        "SnapshotAsset",
        back_populates="snapshot",
        lazy="selectin",
        order_by="SnapshotAsset.ticker",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<PortfolioSnapshot {self.snapshot_date} = {self.total_value_cents}>"


class SnapshotAsset(Base):
    __tablename__ = "snapshot_assets"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    snapshot_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("portfolio_snapshots.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    asset_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("assets.id", ondelete="SET NULL"),
        nullable=True,
    )
    ticker: Mapped[str] = mapped_column(String(20), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(
        Quantity(), nullable=False,
    )
    price_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    value_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    percentage: Mapped[Decimal] = mapped_column(
        Numeric(precision=7, scale=4), nullable=False,
        comment="佔快照總值百分比",
    )

    snapshot = relationship("PortfolioSnapshot", back_populates="assets")

    def __repr__(self) -> str:
        return f"<SnapshotAsset {self.ticker} = {self.value_cents}>"
