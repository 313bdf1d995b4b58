"""
每日快照 Schema
"""

import datetime

from pydantic import BaseModel


class SnapshotListQuery(BaseModel):
    """快照查詢區間（含頭尾）"""
    from_date: datetime.date | None = None
    to_date: datetime.date | None = None


class SnapshotAssetView(BaseModel):
    asset_id: str | None
    ticker: str
    name: str
    quantity: str
    price: str
    value: str
    percentage: str


class SnapshotResponse(BaseModel):
    id: str
    date: datetime.date
    total_value: str
    assets: list[SnapshotAssetView]
    created_at: datetime.datetime | None = None


class SnapshotListResponse(BaseModel):
    snapshots: list[SnapshotResponse]
    total: int
