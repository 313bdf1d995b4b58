"""
Portfolio Ledger 資料庫連線模組

支援 SQLAlchemy 2.0 async engine。
開發模式使用 SQLite，生產環境使用 PostgreSQL。
"""

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from portfolio_ledger.config import get_settings

settings = get_settings()


def configure_sqlite_engine(engine: AsyncEngine) -> None:
    """
    SQLite 連線設定

    - 開啟外鍵約束（刪除資產時連帶刪除持倉與交易）
    - 關閉 driver 自動 BEGIN，改由 SQLAlchemy 發出，SAVEPOINT 才能正確運作
    - 以 BEGIN IMMEDIATE 開始交易，寫入者在交易開頭就取得寫鎖並依 busy timeout 排隊，
      先讀後寫（例如賣出前檢查持倉）不會與其他連線交錯
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def async_database_url(url: str) -> str:
    """postgresql:// 改用 asyncpg 驅動"""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


def build_engine(url: str, *, echo: bool = False, **kwargs) -> AsyncEngine:
    """
    依資料庫類型建立 async engine

    SQLite 允許跨執行緒存取並套用 configure_sqlite_engine；
    PostgreSQL 使用連線池（可由 kwargs 覆寫）。
    """
    url = async_database_url(url)
    is_sqlite = url.startswith("sqlite")

    if is_sqlite:
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        kwargs.setdefault("pool_size", 20)
        kwargs.setdefault("max_overflow", 10)
        kwargs.setdefault("pool_pre_ping", True)

    new_engine = create_async_engine(url, echo=echo, **kwargs)
    if is_sqlite:
        configure_sqlite_engine(new_engine)
    return new_engine


engine = build_engine(
    settings.database_url,
    echo=settings.debug and settings.is_development,
)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """所有 ORM Model 的基礎類別"""
    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI 依賴注入：取得資料庫 session"""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def unit_of_work(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    將多筆寫入包成單一不可分割的單位

    session 閒置時開啟頂層交易並於結束時 commit；
    已在交易中時改用 SAVEPOINT，失敗只回滾這一段。
    """
    if session.in_transaction():
        async with session.begin_nested():
            yield session
    else:
        async with session.begin():
            yield session


async def init_db() -> None:
    """初始化資料庫（開發模式下自動建立所有表）"""
    if settings.use_sqlite:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
