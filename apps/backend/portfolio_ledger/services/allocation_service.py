"""
定期投入配置建議服務層

依目標比例與目前偏差，計算一筆投入金額應如何分配到各資產。

邏輯：
1. 基礎配置 = 目標比例 × 投入金額
2. 依偏差調整：低配者多給、超配者少給（調整強度 0.5）；
   沒有持倉或報價的資產市值以 0 計，整個組合都沒有市值時不做調整
3. 負值歸零後等比例正規化，並以最大餘數法分配分位，
   讓各資產建議金額加總恰好等於投入金額
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_FLOOR

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_ledger.config import get_settings
from portfolio_ledger.errors import ValidationError
from portfolio_ledger.models.asset import Asset
from portfolio_ledger.money import (
    CENTS_PER_UNIT,
    Number,
    format_decimal,
    from_minor_units,
    to_decimal,
    to_minor_units,
)
from portfolio_ledger.schemas.contribution import (
    ContributionAllocation,
    ContributionSuggestion,
    ContributionSummary,
)

logger = logging.getLogger(__name__)

# 依偏差修正配置的強度 (0-1)，0.5 為溫和修正
ADJUSTMENT_FACTOR = Decimal("0.5")

# 偏差超過此百分點才視為低配 / 超配
DEVIATION_THRESHOLD = Decimal("1")

TARGET_SUM = Decimal("100")
TARGET_SUM_TOLERANCE = Decimal("0.01")


@dataclass
class AllocationInput:
    """單一資產的計算輸入；沒有持倉或沒有報價時 value 為 0"""
    asset_id: str
    ticker: str
    name: str
    target_percentage: Decimal
    value: Decimal


@dataclass
class _RawAllocation:
    item: AllocationInput
    actual: Decimal | None
    deviation: Decimal | None
    base: Decimal
    adjusted: Decimal
    reason: str | None


def asset_to_input(asset: Asset) -> AllocationInput:
    """資產市值 = 持倉數量 × 最新報價，兩者缺一時市值為 0（視為尚未買入）"""
    value = Decimal("0")
    if asset.holding is not None and asset.current_price_cents is not None:
        value = asset.holding.quantity * Decimal(asset.current_price_cents) / CENTS_PER_UNIT
    return AllocationInput(
        asset_id=asset.id,
        ticker=asset.ticker,
        name=asset.name,
        target_percentage=asset.target_percentage,
        value=value,
    )


def _distribute_cents(finals: list[Decimal], amount: Decimal) -> list[int]:
    """
    最大餘數法：先無條件捨去到分，再把剩下的分補給小數部分最大的資產
    """
    exact = [f * CENTS_PER_UNIT for f in finals]
    floors = [int(e.to_integral_value(rounding=ROUND_FLOOR)) for e in exact]
    remainder = to_minor_units(amount) - sum(floors)
    if remainder > 0:
        order = sorted(
            range(len(exact)),
            key=lambda i: exact[i] - floors[i],
            reverse=True,
        )
        for i in order[:remainder]:
            floors[i] += 1
    return floors


def calculate_allocations(
    items: list[AllocationInput], amount: Decimal
) -> list[ContributionAllocation]:
    """純計算：不存取資料庫，輸出順序與輸入相同"""
    total_value = sum((item.value for item in items), Decimal("0"))

    raw: list[_RawAllocation] = []
    for item in items:
        base = item.target_percentage / TARGET_SUM * amount

        actual = None
        deviation = None
        if total_value > 0:
            actual = item.value / total_value * TARGET_SUM
            deviation = actual - item.target_percentage

        # 低配（負偏差）-> 正向調整；超配（正偏差）-> 負向調整
        adjustment = Decimal("0")
        reason = None
        if deviation is not None:
            adjustment = -deviation * ADJUSTMENT_FACTOR * (amount / TARGET_SUM)
            if deviation < -DEVIATION_THRESHOLD:
                reason = "underweight"
            elif deviation > DEVIATION_THRESHOLD:
                reason = "overweight"

        adjusted = max(Decimal("0"), base + adjustment)
        raw.append(_RawAllocation(item, actual, deviation, base, adjusted, reason))

    total_adjusted = sum((r.adjusted for r in raw), Decimal("0"))
    ratio = amount / total_adjusted if total_adjusted > 0 else Decimal("1")
    finals = [r.adjusted * ratio for r in raw]

    if total_adjusted > 0:
        final_strings = [from_minor_units(c) for c in _distribute_cents(finals, amount)]
    else:
        # 只有直接呼叫且目標比例全為 0 時才會走到這裡；
        # suggest_allocation 已確保目標加總為 100，調整後總額不小於投入金額
        final_strings = [format_decimal(f) for f in finals]

    return [
        ContributionAllocation(
            asset_id=r.item.asset_id,
            ticker=r.item.ticker,
            name=r.item.name,
            target_percentage=format_decimal(r.item.target_percentage),
            actual_percentage=format_decimal(r.actual) if r.actual is not None else None,
            deviation=format_decimal(r.deviation) if r.deviation is not None else None,
            base_allocation=format_decimal(r.base),
            adjusted_allocation=final,
            adjustment_reason=r.reason,
        )
        for r, final in zip(raw, final_strings)
    ]


class AllocationService:
    """投入配置建議業務邏輯（唯讀）"""

    def __init__(self, db: AsyncSession, display_currency: str | None = None):
        self.db = db
        self.display_currency = display_currency or get_settings().display_currency

    async def suggest_allocation(
        self, user_id: str, amount: Number
    ) -> ContributionSuggestion:
        """
        計算投入金額的配置建議

        Raises:
            ValidationError: 金額不為正、尚未設定資產、或目標比例加總不為 100%
        """
        amount = to_decimal(amount)
        if amount <= 0:
            raise ValidationError("Amount must be positive", {"amount": str(amount)})

        stmt = (
            select(Asset)
            .where(Asset.user_id == user_id)
            .order_by(Asset.ticker.asc())
        )
        assets = (await self.db.execute(stmt)).scalars().all()

        if not assets:
            raise ValidationError(
                "No assets configured. Add assets before requesting contribution suggestions."
            )

        target_sum = sum((a.target_percentage for a in assets), Decimal("0"))
        if abs(target_sum - TARGET_SUM) > TARGET_SUM_TOLERANCE:
            logger.info("目標比例加總 %s 不為 100%% (user=%s)", target_sum, user_id)
            raise ValidationError(
                "Targets must sum to 100%",
                {"currentSum": format_decimal(target_sum)},
            )

        allocations = calculate_allocations(
            [asset_to_input(a) for a in assets], amount
        )

        summary = ContributionSummary(
            total_adjusted=format_decimal(amount),
            underweight_count=sum(1 for a in allocations if a.adjustment_reason == "underweight"),
            overweight_count=sum(1 for a in allocations if a.adjustment_reason == "overweight"),
            balanced_count=sum(1 for a in allocations if a.adjustment_reason is None),
        )

        return ContributionSuggestion(
            amount=format_decimal(amount),
            display_currency=self.display_currency,
            allocations=allocations,
            summary=summary,
        )
