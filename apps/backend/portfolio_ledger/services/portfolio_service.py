"""
投資組合服務層

實作淨值摘要計算。市值 = 持倉數量 × 最新報價，四捨五入到分。
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_ledger.models.asset import Asset
from portfolio_ledger.models.holding import Holding
from portfolio_ledger.money import (
    format_decimal,
    format_quantity,
    from_minor_units,
    from_minor_units_nullable,
    multiply_to_minor_units,
    percentage_of,
)
from portfolio_ledger.schemas.portfolio import PortfolioSummary, PositionDetail

logger = logging.getLogger(__name__)


class PortfolioService:
    """投資組合業務邏輯"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_summary(self, user_id: str) -> PortfolioSummary:
        """
        計算投資組合淨值摘要

        邏輯：
        1. 查詢所有持倉部位（依 ticker 排序）
        2. 有報價者以 數量 × 報價 計算市值，無報價者市值為 0
        3. 加總為總市值，再計算各部位實際比例與偏差（實際 - 目標）；
           總市值為 0 時實際比例皆為 0
        """
        stmt = (
            select(Holding)
            .join(Asset, Holding.asset_id == Asset.id)
            .where(Holding.user_id == user_id)
            .order_by(Asset.ticker.asc())
        )
        result = await self.db.execute(stmt)
        holdings = result.scalars().all()

        valued = [
            (
                holding,
                multiply_to_minor_units(holding.quantity, holding.asset.current_price_cents)
                if holding.asset.current_price_cents is not None
                else 0,
            )
            for holding in holdings
        ]
        total_cents = sum(value_cents for _, value_cents in valued)

        positions: list[PositionDetail] = []
        for holding, value_cents in valued:
            asset = holding.asset
            actual = percentage_of(value_cents, total_cents)

            positions.append(PositionDetail(
                asset_id=asset.id,
                ticker=asset.ticker,
                name=asset.name,
                category=asset.category,
                quantity=format_quantity(holding.quantity),
                current_price=from_minor_units_nullable(asset.current_price_cents),
                value=from_minor_units(value_cents),
                target_percentage=format_decimal(asset.target_percentage),
                actual_percentage=format_decimal(actual),
                deviation=format_decimal(actual - asset.target_percentage),
                price_updated_at=asset.price_updated_at,
            ))

        return PortfolioSummary(
            total_value=from_minor_units(total_cents),
            positions=positions,
        )
