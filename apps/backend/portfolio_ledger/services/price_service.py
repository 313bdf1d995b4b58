"""
報價服務層

更新資產最新報價（以整數分儲存）。外部報價來源不在本服務範圍內，
由呼叫端取得價格後寫入。
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_ledger.database import unit_of_work
from portfolio_ledger.errors import NotFoundError
from portfolio_ledger.models.asset import Asset
from portfolio_ledger.money import from_minor_units_nullable, to_minor_units
from portfolio_ledger.schemas.asset import (
    BatchPriceItem,
    BatchPriceResult,
    PriceResponse,
)

logger = logging.getLogger(__name__)


def format_price(asset: Asset) -> PriceResponse:
    return PriceResponse(
        id=asset.id,
        ticker=asset.ticker,
        name=asset.name,
        current_price=from_minor_units_nullable(asset.current_price_cents),
        price_updated_at=asset.price_updated_at,
    )


class PriceService:
    """報價業務邏輯"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def update_price(
        self, user_id: str, asset_id: str, price: Decimal
    ) -> PriceResponse:
        async with unit_of_work(self.db):
            stmt = select(Asset).where(Asset.id == asset_id, Asset.user_id == user_id)
            asset = (await self.db.execute(stmt)).scalar_one_or_none()
            if asset is None:
                raise NotFoundError("Asset")

            asset.current_price_cents = to_minor_units(price)
            asset.price_updated_at = datetime.now(timezone.utc)
            await self.db.flush()

        return format_price(asset)

    async def batch_update_prices(
        self, user_id: str, prices: list[BatchPriceItem]
    ) -> BatchPriceResult:
        """
        批次更新報價

        任一資產不存在或不屬於此用戶時整批拒絕，不套用任何價格。
        """
        asset_ids = [p.asset_id for p in prices]

        async with unit_of_work(self.db):
            stmt = select(Asset).where(Asset.user_id == user_id, Asset.id.in_(asset_ids))
            assets = {a.id: a for a in (await self.db.execute(stmt)).scalars().all()}

            not_found = [i for i in asset_ids if i not in assets]
            if not_found:
                logger.warning("批次更新報價失敗，找不到資產: %s", not_found)
                raise NotFoundError("One or more assets", {"notFound": not_found})

            timestamp = datetime.now(timezone.utc)
            for item in prices:
                asset = assets[item.asset_id]
                asset.current_price_cents = to_minor_units(item.price)
                asset.price_updated_at = timestamp
            await self.db.flush()

        logger.info("已批次更新 %d 筆報價 (user=%s)", len(prices), user_id)
        return BatchPriceResult(
            updated=len(prices),
            assets=[format_price(assets[i]) for i in asset_ids],
        )
