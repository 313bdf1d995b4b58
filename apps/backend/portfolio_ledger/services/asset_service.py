"""
資產服務層

資產 CRUD 與目標配置比例管理。目標比例加總不得超過 100%。
"""

import logging
from decimal import Decimal

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_ledger.database import unit_of_work
from portfolio_ledger.errors import NotFoundError, ValidationError
from portfolio_ledger.models.asset import Asset
from portfolio_ledger.money import format_decimal, from_minor_units_nullable
from portfolio_ledger.schemas.asset import (
    AssetCreate,
    AssetResponse,
    AssetUpdate,
    TargetUpdate,
)

logger = logging.getLogger(__name__)

TARGET_SUM_MAX = Decimal("100")


def format_asset(asset: Asset) -> AssetResponse:
    return AssetResponse(
        id=asset.id,
        ticker=asset.ticker,
        name=asset.name,
        category=asset.category,
        target_percentage=format_decimal(asset.target_percentage),
        current_price=from_minor_units_nullable(asset.current_price_cents),
        price_updated_at=asset.price_updated_at,
        decimal_places=asset.decimal_places,
        created_at=asset.created_at,
    )


class AssetService:
    """資產業務邏輯"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_asset(self, user_id: str, data: AssetCreate) -> AssetResponse:
        async with unit_of_work(self.db):
            await self._ensure_ticker_available(user_id, data.ticker)
            if data.target_percentage > 0:
                await self._ensure_targets_within_limit(
                    user_id, {}, extra=data.target_percentage
                )

            asset = Asset(user_id=user_id, **data.model_dump())
            self.db.add(asset)
            await self.db.flush()
            await self.db.refresh(asset)

        logger.info("已建立資產 %s (user=%s)", asset.ticker, user_id)
        return format_asset(asset)

    async def list_assets(self, user_id: str) -> list[AssetResponse]:
        stmt = (
            select(Asset)
            .where(Asset.user_id == user_id)
            .order_by(Asset.created_at.asc(), Asset.ticker.asc())
        )
        result = await self.db.execute(stmt)
        return [format_asset(a) for a in result.scalars().all()]

    async def get_asset(self, user_id: str, asset_id: str) -> AssetResponse:
        return format_asset(await self._get_owned(user_id, asset_id))

    async def update_asset(
        self, user_id: str, asset_id: str, data: AssetUpdate
    ) -> AssetResponse:
        """
        更新資產

        Raises:
            NotFoundError: 資產不存在或不屬於此用戶
            ValidationError: ticker 重複，或新目標比例使加總超過 100%
        """
        update_data = data.model_dump(exclude_unset=True)

        async with unit_of_work(self.db):
            asset = await self._get_owned(user_id, asset_id)

            if update_data.get("ticker") and update_data["ticker"] != asset.ticker:
                await self._ensure_ticker_available(user_id, update_data["ticker"])

            if update_data.get("target_percentage") is not None:
                await self._ensure_targets_within_limit(
                    user_id, {asset.id: update_data["target_percentage"]}
                )

            for key, value in update_data.items():
                if value is not None:
                    setattr(asset, key, value)
            await self.db.flush()

        return format_asset(asset)

    async def delete_asset(self, user_id: str, asset_id: str) -> None:
        """刪除資產，連帶刪除其持倉與交易紀錄（快照明細保留）"""
        async with unit_of_work(self.db):
            asset = await self._get_owned(user_id, asset_id)
            await self.db.execute(delete(Asset).where(Asset.id == asset.id))
        logger.info("已刪除資產 %s (user=%s)", asset.ticker, user_id)

    async def batch_update_targets(
        self, user_id: str, updates: list[TargetUpdate]
    ) -> list[AssetResponse]:
        """
        批次更新目標比例（全部成功或全部不套用）

        Raises:
            NotFoundError: 任一資產不存在或不屬於此用戶
            ValidationError: 更新後加總超過 100%
        """
        async with unit_of_work(self.db):
            asset_ids = [u.asset_id for u in updates]
            stmt = select(Asset).where(Asset.user_id == user_id, Asset.id.in_(asset_ids))
            assets = {a.id: a for a in (await self.db.execute(stmt)).scalars().all()}

            missing = [i for i in asset_ids if i not in assets]
            if missing:
                raise NotFoundError("Asset", {"notFound": missing})

            pending = {u.asset_id: u.target_percentage for u in updates}
            await self._ensure_targets_within_limit(user_id, pending)

            for update in updates:
                assets[update.asset_id].target_percentage = update.target_percentage
            await self.db.flush()

        return [format_asset(assets[i]) for i in asset_ids]

    async def validate_targets_sum(
        self,
        user_id: str,
        pending_updates: dict[str, Decimal] | None = None,
        extra: Decimal = Decimal("0"),
    ) -> tuple[bool, Decimal, Decimal]:
        """
        計算套用待更新值後的目標比例加總

        Returns:
            (是否 <= 100, 加總, 與 100 的差距)
        """
        pending_updates = pending_updates or {}
        stmt = select(Asset.id, Asset.target_percentage).where(Asset.user_id == user_id)
        rows = (await self.db.execute(stmt)).all()

        total = extra
        for asset_id, target in rows:
            total += pending_updates.get(asset_id, target)

        total = total.quantize(Decimal("0.01"))
        return total <= TARGET_SUM_MAX, total, total - TARGET_SUM_MAX

    async def _ensure_targets_within_limit(
        self,
        user_id: str,
        pending_updates: dict[str, Decimal],
        extra: Decimal = Decimal("0"),
    ) -> None:
        valid, total, difference = await self.validate_targets_sum(
            user_id, pending_updates, extra
        )
        if not valid:
            raise ValidationError(
                f"Targets cannot exceed 100%. Current sum: {total}%",
                {"sum": str(total), "difference": str(difference)},
            )

    async def _ensure_ticker_available(self, user_id: str, ticker: str) -> None:
        stmt = select(Asset.id).where(Asset.user_id == user_id, Asset.ticker == ticker)
        if (await self.db.execute(stmt)).first() is not None:
            raise ValidationError(
                "Asset with this ticker already exists", {"ticker": ticker}
            )

    async def _get_owned(self, user_id: str, asset_id: str) -> Asset:
        stmt = select(Asset).where(Asset.id == asset_id, Asset.user_id == user_id)
        asset = (await self.db.execute(stmt)).scalar_one_or_none()
        if asset is None:
            raise NotFoundError("Asset")
        return asset
