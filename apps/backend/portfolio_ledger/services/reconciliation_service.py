"""
帳務比對邏輯 (Reconciliation)

將每筆持倉的數量與交易紀錄推算出的淨數量（買入 - 賣出）比對，
並找出數量或總額為 0 的異常交易。僅讀取，不修改任何資料。
"""

import logging
from decimal import Decimal

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_ledger.models.asset import Asset
from portfolio_ledger.models.transaction import Transaction, TransactionType
from portfolio_ledger.money import format_quantity
from portfolio_ledger.schemas.portfolio import (
    CorruptedTransaction,
    ReconciliationItem,
    ReconciliationResult,
)

logger = logging.getLogger(__name__)


class ReconciliationService:
    """帳務比對服務"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def reconcile(self, user_id: str) -> ReconciliationResult:
        """
        比對持倉與交易紀錄

        沒有持倉也沒有交易的資產不列入；
        直接設定過持倉數量的資產會顯示為 mismatch。
        """
        assets_stmt = (
            select(Asset)
            .where(Asset.user_id == user_id)
            .order_by(Asset.ticker.asc())
        )
        assets = (await self.db.execute(assets_stmt)).scalars().all()

        tx_stmt = select(
            Transaction.asset_id, Transaction.tx_type, Transaction.quantity
        ).where(Transaction.user_id == user_id)
        ledger: dict[str, Decimal] = {}
        for asset_id, tx_type, quantity in (await self.db.execute(tx_stmt)).all():
            signed = quantity if tx_type == TransactionType.BUY else -quantity
            ledger[asset_id] = ledger.get(asset_id, Decimal("0")) + signed

        items: list[ReconciliationItem] = []
        matched = 0
        mismatched = 0

        for asset in assets:
            if asset.holding is None and asset.id not in ledger:
                continue

            holding_qty = asset.holding.quantity if asset.holding else Decimal("0")
            ledger_qty = ledger.get(asset.id, Decimal("0"))
            diff = holding_qty - ledger_qty

            if diff == 0:
                status = "matched"
                matched += 1
            else:
                status = "mismatch"
                mismatched += 1
                logger.warning(
                    "持倉與交易紀錄不一致: %s 持倉=%s 交易=%s",
                    asset.ticker, holding_qty, ledger_qty,
                )

            items.append(ReconciliationItem(
                asset_id=asset.id,
                ticker=asset.ticker,
                holding_quantity=format_quantity(holding_qty),
                ledger_quantity=format_quantity(ledger_qty),
                difference=format_quantity(diff),
                status=status,
            ))

        corrupted_stmt = (
            select(Transaction)
            .where(
                Transaction.user_id == user_id,
                or_(Transaction.quantity == 0, Transaction.total_cents == 0),
            )
            .order_by(Transaction.date.desc())
        )
        corrupted = [
            CorruptedTransaction(
                id=tx.id,
                ticker=tx.asset.ticker,
                date=tx.date,
                reason="quantity=0" if tx.quantity == 0 else "total=0",
            )
            for tx in (await self.db.execute(corrupted_stmt)).scalars().all()
        ]

        return ReconciliationResult(
            total_assets=len(items),
            matched=matched,
            mismatched=mismatched,
            items=items,
            corrupted_transactions=corrupted,
        )
