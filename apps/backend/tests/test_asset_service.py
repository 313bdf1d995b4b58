"""資產 CRUD 與目標比例測試"""

from decimal import Decimal

import pytest
from sqlalchemy import select

from portfolio_ledger.errors import NotFoundError, ValidationError
from portfolio_ledger.models import Asset
from portfolio_ledger.schemas.asset import AssetCreate, AssetUpdate, TargetUpdate
from portfolio_ledger.services.asset_service import AssetService


class TestCreateAsset:
    async def test_create(self, db_session, test_user):
        asset = await AssetService(db_session).create_asset(
            test_user.id,
            AssetCreate(ticker="VOO", name="Vanguard S&P 500", target_percentage=Decimal("60")),
        )

        assert asset.ticker == "VOO"
        assert asset.category == "ETF"
        assert asset.target_percentage == "60.00"
        assert asset.current_price is None
        assert asset.decimal_places == 8

    async def test_duplicate_ticker_is_rejected(self, db_session, test_user, make_asset):
        await make_asset("VOO", 10)

        with pytest.raises(ValidationError) as exc_info:
            await AssetService(db_session).create_asset(
                test_user.id, AssetCreate(ticker="VOO", name="Again")
            )
        assert exc_info.value.details == {"ticker": "VOO"}

    async def test_same_ticker_for_different_users(
        self, db_session, test_user, second_user, make_asset
    ):
        await make_asset("VOO", 10, user=second_user)

        asset = await AssetService(db_session).create_asset(
            test_user.id, AssetCreate(ticker="VOO", name="Mine")
        )
        assert asset.ticker == "VOO"

    async def test_target_over_limit_is_rejected(self, db_session, test_user, make_asset):
        await make_asset("VOO", 80)

        with pytest.raises(ValidationError) as exc_info:
            await AssetService(db_session).create_asset(
                test_user.id,
                AssetCreate(ticker="BND", name="Bonds", target_percentage=Decimal("30")),
            )
        assert exc_info.value.details == {"sum": "110.00", "difference": "10.00"}


class TestUpdateAndDelete:
    async def test_partial_update(self, db_session, test_user, make_asset):
        asset = await make_asset("VOO", 50)

        updated = await AssetService(db_session).update_asset(
            test_user.id, asset.id, AssetUpdate(name="Renamed", target_percentage=Decimal("70"))
        )

        assert updated.name == "Renamed"
        assert updated.ticker == "VOO"
        assert updated.target_percentage == "70.00"

    async def test_update_target_over_limit(self, db_session, test_user, make_asset):
        voo = await make_asset("VOO", 60)
        await make_asset("BND", 40)

        with pytest.raises(ValidationError):
            await AssetService(db_session).update_asset(
                test_user.id, voo.id, AssetUpdate(target_percentage=Decimal("61"))
            )

    async def test_rename_to_existing_ticker(self, db_session, test_user, make_asset):
        voo = await make_asset("VOO", 10)
        await make_asset("BND", 10)

        with pytest.raises(ValidationError):
            await AssetService(db_session).update_asset(
                test_user.id, voo.id, AssetUpdate(ticker="BND")
            )

    async def test_other_users_asset_is_not_found(
        self, db_session, test_user, second_user, make_asset
    ):
        asset = await make_asset("VOO", 10, user=second_user)
        user_id, asset_id = test_user.id, asset.id
        service = AssetService(db_session)

        with pytest.raises(NotFoundError):
            await service.get_asset(user_id, asset_id)
        with pytest.raises(NotFoundError):
            await service.delete_asset(user_id, asset_id)

    async def test_delete(self, db_session, test_user, make_asset):
        asset = await make_asset("VOO", 10, price="450", quantity="3")
        user_id, asset_id = test_user.id, asset.id

        await AssetService(db_session).delete_asset(user_id, asset_id)

        remaining = (await db_session.execute(select(Asset.id))).scalars().all()
        assert asset_id not in remaining


class TestTargets:
    async def test_batch_update(self, db_session, test_user, make_asset):
        voo = await make_asset("VOO", 100)
        bnd = await make_asset("BND", 0)
        user_id, voo_id, bnd_id = test_user.id, voo.id, bnd.id

        result = await AssetService(db_session).batch_update_targets(
            user_id,
            [
                TargetUpdate(asset_id=voo_id, target_percentage=Decimal("70")),
                TargetUpdate(asset_id=bnd_id, target_percentage=Decimal("30")),
            ],
        )

        assert [a.target_percentage for a in result] == ["70.00", "30.00"]

    async def test_batch_over_limit_applies_nothing(self, db_session, test_user, make_asset):
        voo = await make_asset("VOO", 50)
        bnd = await make_asset("BND", 50)
        user_id, voo_id, bnd_id = test_user.id, voo.id, bnd.id

        with pytest.raises(ValidationError):
            await AssetService(db_session).batch_update_targets(
                user_id,
                [
                    TargetUpdate(asset_id=voo_id, target_percentage=Decimal("40")),
                    TargetUpdate(asset_id=bnd_id, target_percentage=Decimal("70")),
                ],
            )

        stmt = select(Asset.ticker, Asset.target_percentage).order_by(Asset.ticker)
        rows = (await db_session.execute(stmt)).all()
        assert [(t, p) for t, p in rows] == [("BND", Decimal("50")), ("VOO", Decimal("50"))]

    async def test_batch_with_unknown_asset(self, db_session, test_user, make_asset):
        voo = await make_asset("VOO", 50)

        with pytest.raises(NotFoundError) as exc_info:
            await AssetService(db_session).batch_update_targets(
                test_user.id,
                [
                    TargetUpdate(asset_id=voo.id, target_percentage=Decimal("60")),
                    TargetUpdate(asset_id="missing", target_percentage=Decimal("40")),
                ],
            )
        assert exc_info.value.details == {"notFound": ["missing"]}

    async def test_validate_targets_sum(self, db_session, test_user, make_asset):
        voo = await make_asset("VOO", 60)
        await make_asset("BND", 30)

        valid, total, difference = await AssetService(db_session).validate_targets_sum(
            test_user.id, {voo.id: Decimal("75")}
        )
        assert valid is False
        assert total == Decimal("105.00")
        assert difference == Decimal("5.00")
