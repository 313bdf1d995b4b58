"""Pytest 共用 fixtures"""

import os

# 必須在匯入 portfolio_ledger 之前設定，避免連到開發用資料庫
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from collections.abc import AsyncGenerator
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from portfolio_ledger.database import Base, build_engine, get_db
from portfolio_ledger.main import app
from portfolio_ledger.models import Asset, Holding, User
from portfolio_ledger.money import to_minor_units

# StaticPool 讓 in-memory SQLite 共用同一條連線，否則每次連線都是空資料庫
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    engine = build_engine(TEST_DATABASE_URL, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """API 測試用 client，所有請求共用 db_session"""

    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport, base_url="http://test", follow_redirects=True
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    user = User(email="test@example.com", username="tester")
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def second_user(db_session: AsyncSession) -> User:
    """另一位用戶，用於資料隔離測試"""
    user = User(email="other@example.com", username="other")
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
def auth_headers(test_user: User) -> dict[str, str]:
    return {"X-User-Id": test_user.id}


@pytest_asyncio.fixture
async def make_asset(db_session: AsyncSession, test_user: User):
    """
    建立資產的 factory

    price 為 None 表示尚無報價；quantity 為 None 表示尚無持倉。
    """

    async def _make(
        ticker: str,
        target,
        price=None,
        quantity=None,
        *,
        user: User | None = None,
        category: str = "ETF",
        decimal_places: int = 8,
    ) -> Asset:
        owner = user or test_user
        asset = Asset(
            user_id=owner.id,
            ticker=ticker,
            name=f"{ticker} Fund",
            category=category,
            target_percentage=Decimal(str(target)),
            current_price_cents=to_minor_units(price) if price is not None else None,
            decimal_places=decimal_places,
        )
        if quantity is not None:
            asset.holding = Holding(user_id=owner.id, quantity=Decimal(str(quantity)))
        db_session.add(asset)
        await db_session.commit()
        await db_session.refresh(asset)
        return asset

    return _make


@pytest_asyncio.fixture
async def sample_portfolio(make_asset) -> dict[str, Asset]:
    """VOO 60% / GLD 20% / BTC 20%，BTC 明顯超配"""
    return {
        "VOO": await make_asset("VOO", 60, price="450", quantity="10"),
        "GLD": await make_asset("GLD", 20, price="180", quantity="10"),
        "BTC": await make_asset("BTC", 20, price="50000", quantity="0.1", category="CRYPTO"),
    }
