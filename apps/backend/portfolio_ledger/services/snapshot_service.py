"""
每日快照服務層

將用戶目前的資產、持倉與報價彙整成一天一筆的投資組合快照。
同一天重複建立時，於同一個資料庫交易內刪除舊明細、更新總值並重建明細。
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_ledger.config import get_settings
from portfolio_ledger.database import unit_of_work
from portfolio_ledger.errors import ConflictError, NotFoundError
from portfolio_ledger.models.asset import Asset
from portfolio_ledger.models.snapshot import PortfolioSnapshot, SnapshotAsset
from portfolio_ledger.money import (
    format_decimal,
    format_quantity,
    from_minor_units,
    multiply_to_minor_units,
    percentage_of,
)
from portfolio_ledger.schemas.snapshot import (
    SnapshotAssetView,
    SnapshotListQuery,
    SnapshotListResponse,
    SnapshotResponse,
)

logger = logging.getLogger(__name__)


@dataclass
class _LineItem:
    asset_id: str
    ticker: str
    name: str
    quantity: Decimal
    price_cents: int
    value_cents: int


def build_line_items(assets: list[Asset]) -> tuple[list[_LineItem], int]:
    """只納入同時有持倉與報價的資產，回傳 (明細, 總值分)"""
    items = [
        _LineItem(
            asset_id=a.id,
            ticker=a.ticker,
            name=a.name,
            quantity=a.holding.quantity,
            price_cents=a.current_price_cents,
            value_cents=multiply_to_minor_units(a.holding.quantity, a.current_price_cents),
        )
        for a in assets
        if a.holding is not None and a.current_price_cents is not None
    ]
    return items, sum(i.value_cents for i in items)


def format_snapshot(snapshot: PortfolioSnapshot) -> SnapshotResponse:
    return SnapshotResponse(
        id=snapshot.id,
        date=snapshot.snapshot_date,
        total_value=from_minor_units(snapshot.total_value_cents),
        assets=[
            SnapshotAssetView(
                asset_id=a.asset_id,
                ticker=a.ticker,
                name=a.name,
                quantity=format_quantity(a.quantity),
                price=from_minor_units(a.price_cents),
                value=from_minor_units(a.value_cents),
                percentage=format_decimal(a.percentage),
            )
            for a in snapshot.assets
        ],
        created_at=snapshot.created_at,
    )


class SnapshotService:
    """投資組合快照業務邏輯"""

    def __init__(
        self,
        db: AsyncSession,
        today: Callable[[], date] | None = None,
    ):
        self.db = db
        self._today = today or get_settings().snapshot_today

    async def create_snapshot(self, user_id: str) -> SnapshotResponse:
        """
        建立（或覆寫）今日快照

        Raises:
            ConflictError: 同一天的快照正被另一個請求同時建立
        """
        today = self._today()

        try:
            async with unit_of_work(self.db):
                stmt = (
                    select(Asset)
                    .where(Asset.user_id == user_id)
                    .order_by(Asset.ticker.asc())
                )
                assets = (await self.db.execute(stmt)).scalars().all()
                items, total_cents = build_line_items(list(assets))

                existing = await self._find_for_day(user_id, today)
                if existing is not None:
                    # 同一天重新建立：刪除舊明細後重建
                    await self.db.execute(
                        delete(SnapshotAsset).where(SnapshotAsset.snapshot_id == existing.id)
                    )
                    existing.total_value_cents = total_cents
                    snapshot = existing
                else:
                    snapshot = PortfolioSnapshot(
                        user_id=user_id,
                        snapshot_date=today,
                        total_value_cents=total_cents,
                    )
                    self.db.add(snapshot)
                    await self.db.flush()

                self.db.add_all([
                    SnapshotAsset(
                        snapshot_id=snapshot.id,
                        asset_id=item.asset_id,
                        ticker=item.ticker,
                        name=item.name,
                        quantity=item.quantity,
                        price_cents=item.price_cents,
                        value_cents=item.value_cents,
                        percentage=percentage_of(item.value_cents, total_cents),
                    )
                    for item in items
                ])
                await self.db.flush()
        except IntegrityError as e:
            logger.warning("快照寫入衝突 (user=%s, date=%s): %s", user_id, today, e)
            raise ConflictError(
                "Snapshot for this day is being created by another request",
                {"date": today.isoformat()},
            ) from e

        logger.info(
            "%s快照 %s (user=%s, 資產 %d 筆, total_cents=%d)",
            "更新" if existing is not None else "建立",
            today, user_id, len(items), total_cents,
        )
        return await self.get_snapshot(user_id, snapshot.id)

    async def list_snapshots(
        self, user_id: str, query: SnapshotListQuery | None = None
    ) -> SnapshotListResponse:
        """取得快照列表（依日期新到舊）"""
        stmt = select(PortfolioSnapshot).where(PortfolioSnapshot.user_id == user_id)
        if query is not None:
            if query.from_date:
                stmt = stmt.where(PortfolioSnapshot.snapshot_date >= query.from_date)
            if query.to_date:
                stmt = stmt.where(PortfolioSnapshot.snapshot_date <= query.to_date)
        stmt = stmt.order_by(PortfolioSnapshot.snapshot_date.desc())

        result = await self.db.execute(stmt)
        snapshots = result.scalars().all()
        return SnapshotListResponse(
            snapshots=[format_snapshot(s) for s in snapshots],
            total=len(snapshots),
        )

    async def get_snapshot(self, user_id: str, snapshot_id: str) -> SnapshotResponse:
        stmt = (
            select(PortfolioSnapshot)
            .where(
                PortfolioSnapshot.id == snapshot_id,
                PortfolioSnapshot.user_id == user_id,
            )
            .execution_options(populate_existing=True)
        )
        snapshot = (await self.db.execute(stmt)).scalar_one_or_none()
        if snapshot is None:
            raise NotFoundError("Snapshot")
        return format_snapshot(snapshot)

    async def _find_for_day(self, user_id: str, day: date) -> PortfolioSnapshot | None:
        stmt = (
            select(PortfolioSnapshot)
            .where(
                PortfolioSnapshot.user_id == user_id,
                PortfolioSnapshot.snapshot_date == day,
            )
            .with_for_update()
        )
        return (await self.db.execute(stmt)).scalar_one_or_none()
