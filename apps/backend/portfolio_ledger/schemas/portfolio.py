"""
投資組合相關 Schema

定義淨值摘要與帳務比對的回應模型。
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class PositionDetail(BaseModel):
    """持倉明細（含最新報價與市值）"""
    asset_id: str
    ticker: str
    name: str
    category: str
    quantity: str
    current_price: str | None
    value: str
    target_percentage: str
    actual_percentage: str
    deviation: str
    price_updated_at: datetime | None = None


class PortfolioSummary(BaseModel):
    """投資組合淨值摘要"""
    total_value: str
    positions: list[PositionDetail]


class ReconciliationItem(BaseModel):
    """持倉與交易紀錄比對項目"""
    asset_id: str
    ticker: str
    holding_quantity: str
    ledger_quantity: str
    difference: str
    status: Literal["matched", "mismatch"]


class CorruptedTransaction(BaseModel):
    """數量或總額為 0 的異常交易"""
    id: str
    ticker: str
    date: datetime
    reason: Literal["quantity=0", "total=0"]


class ReconciliationResult(BaseModel):
    """帳務比對結果"""
    total_assets: int
    matched: int
    mismatched: int
    items: list[ReconciliationItem]
    corrupted_transactions: list[CorruptedTransaction]
