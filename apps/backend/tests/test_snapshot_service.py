"""每日快照測試"""

from datetime import date
from decimal import Decimal

import pytest

from portfolio_ledger.errors import NotFoundError
from portfolio_ledger.schemas.snapshot import SnapshotListQuery
from portfolio_ledger.services.asset_service import AssetService
from portfolio_ledger.services.price_service import PriceService
from portfolio_ledger.services.snapshot_service import SnapshotService


class FixedClock:
    """可手動推進的日期，取代伺服器時間"""

    def __init__(self, day: date):
        self.day = day

    def __call__(self) -> date:
        return self.day


class TestCreateSnapshot:
    async def test_captures_priced_holdings(self, db_session, test_user, sample_portfolio):
        clock = FixedClock(date(2024, 3, 1))

        snapshot = await SnapshotService(db_session, today=clock).create_snapshot(test_user.id)

        assert snapshot.date == date(2024, 3, 1)
        assert snapshot.total_value == "11300.00"
        by_ticker = {a.ticker: a for a in snapshot.assets}
        assert set(by_ticker) == {"BTC", "GLD", "VOO"}
        assert by_ticker["VOO"].value == "4500.00"
        assert by_ticker["VOO"].price == "450.00"
        assert by_ticker["BTC"].quantity == "0.1"
        assert by_ticker["BTC"].percentage == "44.25"
        assert sum(Decimal(a.value) for a in snapshot.assets) == Decimal("11300.00")

    async def test_skips_assets_without_price_or_holding(
        self, db_session, test_user, make_asset
    ):
        await make_asset("VOO", 50, price="450", quantity="2")
        await make_asset("NOPRICE", 25, quantity="5")
        await make_asset("NOHOLD", 25, price="10")

        snapshot = await SnapshotService(
            db_session, today=FixedClock(date(2024, 3, 1))
        ).create_snapshot(test_user.id)

        assert [a.ticker for a in snapshot.assets] == ["VOO"]
        assert snapshot.total_value == "900.00"
        assert snapshot.assets[0].percentage == "100.00"

    async def test_empty_portfolio(self, db_session, test_user):
        snapshot = await SnapshotService(
            db_session, today=FixedClock(date(2024, 3, 1))
        ).create_snapshot(test_user.id)

        assert snapshot.total_value == "0.00"
        assert snapshot.assets == []

    async def test_same_day_overwrites(self, db_session, test_user, sample_portfolio):
        user_id = test_user.id
        voo_id = sample_portfolio["VOO"].id
        service = SnapshotService(db_session, today=FixedClock(date(2024, 3, 1)))

        first = await service.create_snapshot(user_id)
        await PriceService(db_session).update_price(user_id, voo_id, Decimal("500"))
        second = await service.create_snapshot(user_id)

        assert second.id == first.id
        assert second.total_value == "11800.00"
        assert len(second.assets) == 3
        assert next(a for a in second.assets if a.ticker == "VOO").value == "5000.00"

        listed = await service.list_snapshots(user_id)
        assert listed.total == 1

    async def test_new_day_creates_new_snapshot(self, db_session, test_user, sample_portfolio):
        user_id = test_user.id
        clock = FixedClock(date(2024, 3, 1))
        service = SnapshotService(db_session, today=clock)

        first = await service.create_snapshot(user_id)
        clock.day = date(2024, 3, 2)
        second = await service.create_snapshot(user_id)

        assert second.id != first.id
        listed = await service.list_snapshots(user_id)
        assert [s.date for s in listed.snapshots] == [date(2024, 3, 2), date(2024, 3, 1)]

    async def test_deleted_asset_keeps_snapshot_line(
        self, db_session, test_user, sample_portfolio
    ):
        user_id = test_user.id
        gld_id = sample_portfolio["GLD"].id
        service = SnapshotService(db_session, today=FixedClock(date(2024, 3, 1)))
        created = await service.create_snapshot(user_id)

        await AssetService(db_session).delete_asset(user_id, gld_id)
        db_session.expire_all()

        snapshot = await service.get_snapshot(user_id, created.id)
        gld = next(a for a in snapshot.assets if a.ticker == "GLD")
        assert gld.asset_id is None
        assert gld.value == "1800.00"


class TestQuerySnapshots:
    async def test_date_range_filter(self, db_session, test_user, sample_portfolio):
        user_id = test_user.id
        clock = FixedClock(date(2024, 3, 1))
        service = SnapshotService(db_session, today=clock)
        for day in (1, 2, 3):
            clock.day = date(2024, 3, day)
            await service.create_snapshot(user_id)

        result = await service.list_snapshots(
            user_id,
            SnapshotListQuery(from_date=date(2024, 3, 2), to_date=date(2024, 3, 3)),
        )
        assert result.total == 2
        assert {s.date for s in result.snapshots} == {date(2024, 3, 2), date(2024, 3, 3)}

    async def test_other_users_snapshot_is_not_found(
        self, db_session, test_user, second_user, sample_portfolio
    ):
        user_id, other_id = test_user.id, second_user.id
        service = SnapshotService(db_session, today=FixedClock(date(2024, 3, 1)))
        created = await service.create_snapshot(user_id)

        with pytest.raises(NotFoundError):
            await service.get_snapshot(other_id, created.id)

        assert (await service.list_snapshots(other_id)).total == 0
