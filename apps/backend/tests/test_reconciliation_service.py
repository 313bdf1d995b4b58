"""帳務比對測試"""

from datetime import datetime, timezone
from decimal import Decimal

from portfolio_ledger.models import Transaction, TransactionType
from portfolio_ledger.schemas.transaction import TransactionCreate
from portfolio_ledger.services.holding_service import HoldingService
from portfolio_ledger.services.ledger_service import LedgerService
from portfolio_ledger.services.reconciliation_service import ReconciliationService


def _tx(tx_type: str, asset_id: str, quantity: str, price: str) -> TransactionCreate:
    return TransactionCreate(
        type=tx_type,
        asset_id=asset_id,
        date=datetime(2024, 2, 1, tzinfo=timezone.utc),
        quantity=Decimal(quantity),
        price=Decimal(price),
    )


class TestReconcile:
    async def test_ledger_driven_holdings_match(self, db_session, test_user, make_asset):
        asset = await make_asset("VOO", 100)
        user_id, asset_id = test_user.id, asset.id
        ledger = LedgerService(db_session)

        await ledger.record_transaction(user_id, _tx("buy", asset_id, "10", "450"))
        await ledger.record_transaction(user_id, _tx("sell", asset_id, "4", "455"))

        result = await ReconciliationService(db_session).reconcile(user_id)

        assert result.total_assets == 1
        assert result.matched == 1
        assert result.mismatched == 0
        item = result.items[0]
        assert item.holding_quantity == "6"
        assert item.ledger_quantity == "6"
        assert item.difference == "0"
        assert item.status == "matched"

    async def test_manual_holding_is_reported_as_mismatch(
        self, db_session, test_user, make_asset
    ):
        voo = await make_asset("VOO", 50)
        gld = await make_asset("GLD", 50)
        user_id, voo_id, gld_id = test_user.id, voo.id, gld.id

        await LedgerService(db_session).record_transaction(
            user_id, _tx("buy", voo_id, "2", "450")
        )
        await HoldingService(db_session).set_holding(user_id, gld_id, Decimal("7.5"))

        result = await ReconciliationService(db_session).reconcile(user_id)

        by_ticker = {i.ticker: i for i in result.items}
        assert by_ticker["VOO"].status == "matched"
        assert by_ticker["GLD"].status == "mismatch"
        assert by_ticker["GLD"].ledger_quantity == "0"
        assert by_ticker["GLD"].difference == "7.5"
        assert result.mismatched == 1

    async def test_assets_without_activity_are_skipped(
        self, db_session, test_user, make_asset
    ):
        await make_asset("IDLE", 100)

        result = await ReconciliationService(db_session).reconcile(test_user.id)

        assert result.total_assets == 0
        assert result.items == []

    async def test_corrupted_transactions(self, db_session, test_user, make_asset):
        asset = await make_asset("VOO", 100, quantity="0")
        user_id, asset_id = test_user.id, asset.id
        db_session.add_all([
            Transaction(
                user_id=user_id,
                asset_id=asset_id,
                tx_type=TransactionType.BUY,
                date=datetime(2024, 1, 2, tzinfo=timezone.utc),
                quantity=Decimal("0"),
                price_cents=45000,
                commission_cents=0,
                total_cents=0,
            ),
            Transaction(
                user_id=user_id,
                asset_id=asset_id,
                tx_type=TransactionType.BUY,
                date=datetime(2024, 1, 1, tzinfo=timezone.utc),
                quantity=Decimal("1"),
                price_cents=0,
                commission_cents=0,
                total_cents=0,
            ),
        ])
        await db_session.commit()

        result = await ReconciliationService(db_session).reconcile(user_id)

        assert [c.reason for c in result.corrupted_transactions] == ["quantity=0", "total=0"]
        assert all(c.ticker == "VOO" for c in result.corrupted_transactions)
