"""
交易帳本服務層

新增買賣交易並在同一個資料庫交易內更新持倉數量。

流程：
1. 鎖定資產列（SELECT ... FOR UPDATE），同一資產的並行寫入依序執行
2. 驗證數量精度與賣出數量（不得超過目前持倉）
3. 寫入 Transaction 記錄
4. 建立或更新 Holding（買入加、賣出減）

3、4 兩步同時成功或同時失敗，不會留下只寫一半的狀態。
"""

import logging
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_ledger.database import unit_of_work
from portfolio_ledger.errors import NotFoundError, ValidationError
from portfolio_ledger.models.asset import Asset
from portfolio_ledger.models.holding import Holding
from portfolio_ledger.models.transaction import Transaction, TransactionType
from portfolio_ledger.money import (
    count_decimal_places,
    format_quantity,
    from_minor_units,
    multiply_to_minor_units,
    to_minor_units,
)
from portfolio_ledger.schemas.transaction import (
    TransactionAsset,
    TransactionCreate,
    TransactionListQuery,
    TransactionListResponse,
    TransactionResponse,
)

logger = logging.getLogger(__name__)


def format_transaction(tx: Transaction, asset: Asset) -> TransactionResponse:
    """轉為 API 回應格式；買入填 total_cost，賣出填 total_proceeds"""
    total = from_minor_units(tx.total_cents)
    is_buy = tx.tx_type == TransactionType.BUY
    return TransactionResponse(
        id=tx.id,
        type=tx.tx_type,
        asset_id=tx.asset_id,
        asset=TransactionAsset(ticker=asset.ticker, name=asset.name),
        date=tx.date,
        quantity=format_quantity(tx.quantity),
        price=from_minor_units(tx.price_cents),
        commission=from_minor_units(tx.commission_cents),
        total_cost=total if is_buy else None,
        total_proceeds=None if is_buy else total,
        created_at=tx.created_at,
    )


def calculate_total_cents(
    tx_type: TransactionType,
    quantity: Decimal,
    price_cents: int,
    commission_cents: int,
) -> int:
    """
    交易總額（分）

    買入：數量 × 單價 + 手續費（總成本）
    賣出：數量 × 單價 - 手續費（淨收入）
    """
    base_cents = multiply_to_minor_units(quantity, price_cents)
    if tx_type == TransactionType.BUY:
        return base_cents + commission_cents
    return base_cents - commission_cents


class LedgerService:
    """交易帳本業務邏輯"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def record_transaction(
        self, user_id: str, data: TransactionCreate
    ) -> TransactionResponse:
        """
        新增交易並原子性地更新持倉

        Raises:
            NotFoundError: 資產不存在或不屬於此用戶
            ValidationError: 數量精度超出限制，或賣出數量大於持倉
        """
        async with unit_of_work(self.db):
            asset = await self._lock_asset(user_id, data.asset_id)
            self._check_precision(asset, data.quantity)

            holding = await self._get_holding(asset.id)
            if data.type == TransactionType.SELL:
                self._check_sell_quantity(asset, holding, data.quantity)

            price_cents = to_minor_units(data.price)
            commission_cents = to_minor_units(data.commission)

            tx = Transaction(
                user_id=user_id,
                asset_id=asset.id,
                tx_type=data.type,
                date=data.date,
                quantity=data.quantity,
                price_cents=price_cents,
                commission_cents=commission_cents,
                total_cents=calculate_total_cents(
                    data.type, data.quantity, price_cents, commission_cents
                ),
            )
            self.db.add(tx)
            await self.db.flush()

            await self._apply_to_holding(user_id, asset, holding, tx)
            await self.db.flush()
            await self.db.refresh(tx, attribute_names=["created_at"])

        logger.info(
            "交易已入帳: %s %s x%s (user=%s, total_cents=%d)",
            tx.tx_type.value, asset.ticker, tx.quantity, user_id, tx.total_cents,
        )
        return format_transaction(tx, asset)

    async def list_transactions(
        self, user_id: str, query: TransactionListQuery | None = None
    ) -> TransactionListResponse:
        """取得用戶交易紀錄（依日期新到舊）"""
        conditions = [Transaction.user_id == user_id]
        if query is not None:
            if query.asset_id:
                conditions.append(Transaction.asset_id == query.asset_id)
            if query.type:
                conditions.append(Transaction.tx_type == query.type)
            if query.from_date:
                conditions.append(Transaction.date >= query.from_date)
            if query.to_date:
                conditions.append(Transaction.date <= query.to_date)

        count_stmt = (
            select(func.count())
            .select_from(Transaction)
            .where(*conditions)
        )
        total = (await self.db.execute(count_stmt)).scalar() or 0

        stmt = (
            select(Transaction)
            .where(*conditions)
            .order_by(Transaction.date.desc(), Transaction.created_at.desc())
        )
        result = await self.db.execute(stmt)
        transactions = result.scalars().all()

        return TransactionListResponse(
            transactions=[format_transaction(tx, tx.asset) for tx in transactions],
            total=total,
        )

    async def get_transaction(self, user_id: str, tx_id: str) -> TransactionResponse:
        stmt = select(Transaction).where(
            Transaction.id == tx_id,
            Transaction.user_id == user_id,
        )
        tx = (await self.db.execute(stmt)).scalar_one_or_none()
        if tx is None:
            raise NotFoundError("Transaction")
        return format_transaction(tx, tx.asset)

    async def _lock_asset(self, user_id: str, asset_id: str) -> Asset:
        """鎖定資產列，讓同一資產的持倉讀寫依序進行"""
        stmt = (
            select(Asset)
            .where(Asset.id == asset_id, Asset.user_id == user_id)
            .with_for_update()
        )
        asset = (await self.db.execute(stmt)).scalar_one_or_none()
        if asset is None:
            raise NotFoundError("Asset")
        return asset

    async def _get_holding(self, asset_id: str) -> Holding | None:
        stmt = (
            select(Holding)
            .where(Holding.asset_id == asset_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return (await self.db.execute(stmt)).scalar_one_or_none()

    @staticmethod
    def _check_precision(asset: Asset, quantity: Decimal) -> None:
        provided = count_decimal_places(quantity)
        if provided > asset.decimal_places:
            raise ValidationError(
                f"Quantity exceeds {asset.decimal_places} decimal places for {asset.ticker}",
                {
                    "decimalPlaces": asset.decimal_places,
                    "provided": provided,
                    "ticker": asset.ticker,
                },
            )

    @staticmethod
    def _check_sell_quantity(
        asset: Asset, holding: Holding | None, quantity: Decimal
    ) -> None:
        """賣出數量不得超過目前持倉；全數賣出允許"""
        available = holding.quantity if holding is not None else Decimal("0")
        if quantity > available:
            logger.warning(
                "賣出 %s 數量不足: 持有 %s, 欲賣出 %s",
                asset.ticker, available, quantity,
            )
            raise ValidationError(
                "Insufficient holdings",
                {
                    "available": format_quantity(available),
                    "requested": format_quantity(quantity),
                },
            )

    async def _apply_to_holding(
        self,
        user_id: str,
        asset: Asset,
        holding: Holding | None,
        tx: Transaction,
    ) -> Holding:
        """根據交易類型建立或更新持倉"""
        if holding is None:
            # 賣出已在前面驗證過，走到這裡必為買入
            holding = Holding(user_id=user_id, asset=asset, quantity=tx.quantity)
            self.db.add(holding)
            return holding

        if tx.tx_type == TransactionType.BUY:
            holding.quantity = holding.quantity + tx.quantity
        else:
            holding.quantity = holding.quantity - tx.quantity
        return holding
