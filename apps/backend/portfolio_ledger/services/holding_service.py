"""
持倉服務層

查詢持倉與直接設定持倉數量（例如初次匯入既有部位）。
一般買賣請走 LedgerService，才會留下交易紀錄。
"""

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_ledger.database import unit_of_work
from portfolio_ledger.errors import ForbiddenError, NotFoundError
from portfolio_ledger.models.asset import Asset
from portfolio_ledger.models.holding import Holding
from portfolio_ledger.money import format_quantity
from portfolio_ledger.schemas.asset import HoldingResponse, HoldingSetResult

logger = logging.getLogger(__name__)


def format_holding(holding: Holding, asset: Asset) -> HoldingResponse:
    return HoldingResponse(
        id=holding.id,
        asset_id=asset.id,
        ticker=asset.ticker,
        name=asset.name,
        category=asset.category,
        quantity=format_quantity(holding.quantity),
        updated_at=holding.updated_at,
    )


class HoldingService:
    """持倉業務邏輯"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_holdings(self, user_id: str) -> list[HoldingResponse]:
        """取得用戶所有持倉（依 ticker 排序）"""
        stmt = (
            select(Holding)
            .join(Asset, Holding.asset_id == Asset.id)
            .where(Holding.user_id == user_id)
            .order_by(Asset.ticker.asc())
        )
        result = await self.db.execute(stmt)
        return [format_holding(h, h.asset) for h in result.scalars().all()]

    async def set_holding(
        self, user_id: str, asset_id: str, quantity: Decimal
    ) -> HoldingSetResult:
        """
        建立或覆寫持倉數量

        Raises:
            NotFoundError: 資產不存在
            ForbiddenError: 資產屬於其他用戶
        """
        async with unit_of_work(self.db):
            stmt = select(Asset).where(Asset.id == asset_id).with_for_update()
            asset = (await self.db.execute(stmt)).scalar_one_or_none()
            if asset is None:
                raise NotFoundError("Asset")
            if asset.user_id != user_id:
                raise ForbiddenError()

            holding_stmt = (
                select(Holding)
                .where(Holding.asset_id == asset.id)
                .execution_options(populate_existing=True)
            )
            holding = (await self.db.execute(holding_stmt)).scalar_one_or_none()
            is_new = holding is None

            if is_new:
                holding = Holding(user_id=user_id, asset=asset, quantity=quantity)
                self.db.add(holding)
            else:
                holding.quantity = quantity

            await self.db.flush()
            await self.db.refresh(holding, attribute_names=["updated_at"])

        logger.info(
            "%s持倉 %s = %s (user=%s)",
            "建立" if is_new else "更新", asset.ticker, quantity, user_id,
        )
        return HoldingSetResult(holding=format_holding(holding, asset), is_new=is_new)
