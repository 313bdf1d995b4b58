"""
交易相關 Schema

定義新增交易、交易紀錄查詢的請求與回應模型。
金額以兩位小數字串輸出，數量保留原始精度。
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from portfolio_ledger.models.transaction import TransactionType


class TransactionCreate(BaseModel):
    """新增交易請求（type 接受 buy / sell）"""
    type: TransactionType
    asset_id: str
    date: datetime
    quantity: Decimal = Field(gt=0)
    price: Decimal = Field(gt=0)
    commission: Decimal = Field(default=Decimal("0"), ge=0)

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value):
        return value.upper() if isinstance(value, str) else value


class TransactionListQuery(BaseModel):
    """交易紀錄查詢條件"""
    asset_id: str | None = None
    type: TransactionType | None = None
    from_date: datetime | None = None
    to_date: datetime | None = None

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value):
        return value.upper() if isinstance(value, str) else value


class TransactionAsset(BaseModel):
    ticker: str
    name: str


class TransactionResponse(BaseModel):
    """
    交易紀錄回應

    total_cost 僅買入有值，total_proceeds 僅賣出有值，兩者不會同時出現。
    """
    id: str
    type: TransactionType
    asset_id: str
    asset: TransactionAsset
    date: datetime
    quantity: str
    price: str
    commission: str
    total_cost: str | None = None
    total_proceeds: str | None = None
    created_at: datetime | None = None


class TransactionListResponse(BaseModel):
    transactions: list[TransactionResponse]
    total: int
