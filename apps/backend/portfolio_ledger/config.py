"""
Portfolio Ledger 後端設定模組

使用 Pydantic Settings 管理環境變數，自動驗證型別與預設值。
"""

from datetime import date, datetime
from functools import lru_cache
from typing import Literal
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """應用程式設定，透過環境變數或 .env 載入"""

    # === 應用程式 ===
    app_env: Literal["development", "production", "testing"] = "development"
    app_name: str = "Portfolio Ledger API"
    app_version: str = "0.1.0"
    debug: bool = True

    # === 資料庫 ===
    # 預設使用 SQLite（開發模式），生產環境切換為 PostgreSQL
    database_url: str = "sqlite+aiosqlite:///./portfolio_ledger.db"

    # === 投資組合 ===
    display_currency: str = "USD"
    # 每日快照的「今天」以此時區判斷；未設定時使用伺服器本地時間
    snapshot_timezone: str | None = None

    # === CORS ===
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def use_sqlite(self) -> bool:
        """判斷是否使用 SQLite（開發模式）"""
        return "sqlite" in self.database_url

    def snapshot_today(self) -> date:
        """依快照時區取得今天日期"""
        if self.snapshot_timezone:
            return datetime.now(ZoneInfo(self.snapshot_timezone)).date()
        return date.today()


@lru_cache
def get_settings() -> Settings:
    """取得快取的設定實例"""
    return Settings()
