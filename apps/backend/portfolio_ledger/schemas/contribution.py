"""
定期投入配置建議 Schema
"""

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

AdjustmentReason = Literal["underweight", "overweight"]


class ContributionRequest(BaseModel):
    """配置建議請求"""
    amount: Decimal = Field(gt=0)


class ContributionAllocation(BaseModel):
    """
    單一資產的建議配置

    actual_percentage / deviation 為 None 表示沒有持倉或報價，
    與「偏差為 0」不同。
    """
    asset_id: str
    ticker: str
    name: str
    target_percentage: str
    actual_percentage: str | None
    deviation: str | None
    base_allocation: str
    adjusted_allocation: str
    adjustment_reason: AdjustmentReason | None


class ContributionSummary(BaseModel):
    total_adjusted: str
    underweight_count: int
    overweight_count: int
    balanced_count: int


class ContributionSuggestion(BaseModel):
    amount: str
    display_currency: str
    allocations: list[ContributionAllocation]
    summary: ContributionSummary
