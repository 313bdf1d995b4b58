"""
資產、持倉與報價相關 Schema

定義資產 CRUD、目標比例批次更新、持倉設定與報價更新的請求與回應模型。
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class AssetCreate(BaseModel):
    """建立資產"""
    ticker: str = Field(min_length=1, max_length=20)
    name: str = Field(min_length=1, max_length=100)
    category: str = Field(default="ETF", max_length=20)
    target_percentage: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    decimal_places: int = Field(default=8, ge=0, le=8)


class AssetUpdate(BaseModel):
    """更新資產"""
    ticker: str | None = Field(default=None, min_length=1, max_length=20)
    name: str | None = Field(default=None, min_length=1, max_length=100)
    category: str | None = Field(default=None, max_length=20)
    target_percentage: Decimal | None = Field(default=None, ge=0, le=100)
    decimal_places: int | None = Field(default=None, ge=0, le=8)


class AssetResponse(BaseModel):
    """資產回應"""
    id: str
    ticker: str
    name: str
    category: str
    target_percentage: str
    current_price: str | None
    price_updated_at: datetime | None = None
    decimal_places: int
    created_at: datetime | None = None


class TargetUpdate(BaseModel):
    asset_id: str
    target_percentage: Decimal = Field(ge=0, le=100)


class BatchTargetsUpdate(BaseModel):
    """批次更新目標比例"""
    targets: list[TargetUpdate] = Field(min_length=1)


class HoldingSet(BaseModel):
    """直接設定持倉數量"""
    asset_id: str
    quantity: Decimal = Field(ge=0)


class HoldingResponse(BaseModel):
    id: str
    asset_id: str
    ticker: str
    name: str
    category: str
    quantity: str
    updated_at: datetime | None = None


class HoldingSetResult(BaseModel):
    holding: HoldingResponse
    is_new: bool


class PriceUpdate(BaseModel):
    price: Decimal = Field(gt=0)


class BatchPriceItem(BaseModel):
    asset_id: str
    price: Decimal = Field(gt=0)


class BatchPricesUpdate(BaseModel):
    """批次更新報價（全部成功或全部不套用）"""
    prices: list[BatchPriceItem] = Field(min_length=1)


class PriceResponse(BaseModel):
    id: str
    ticker: str
    name: str
    current_price: str | None
    price_updated_at: datetime | None = None


class BatchPriceResult(BaseModel):
    updated: int
    assets: list[PriceResponse]
