"""
金額與數量編碼

金額一律以整數最小單位（分）儲存，四捨五入採 ROUND_HALF_UP（遠離零）。
數量不做最小單位編碼，保留完整 Decimal 精度。
"""

from decimal import Decimal, ROUND_HALF_UP

CENTS_PER_UNIT = Decimal("100")
TWO_PLACES = Decimal("0.01")
PERCENTAGE_PLACES = Decimal("0.0001")

Number = Decimal | int | float | str


def to_decimal(value: Number) -> Decimal:
    """轉為 Decimal；float 先轉字串，避免二進位誤差"""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_half_up(value: Decimal) -> int:
    """四捨五入到整數（.5 遠離零）"""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_minor_units(amount: Number) -> int:
    """金額轉為整數分，例如 450.75 -> 45075"""
    return round_half_up(to_decimal(amount) * CENTS_PER_UNIT)


def to_minor_units_nullable(amount: Number | None) -> int | None:
    if amount is None:
        return None
    return to_minor_units(amount)


def from_minor_units(cents: int) -> str:
    """整數分轉為固定兩位小數字串，例如 45075 -> "450.75" """
    return str((Decimal(cents) / CENTS_PER_UNIT).quantize(TWO_PLACES))


def from_minor_units_nullable(cents: int | None) -> str | None:
    if cents is None:
        return None
    return from_minor_units(cents)


def format_decimal(value: Number) -> str:
    """任意數值格式化為兩位小數字串（百分比、配置金額等）"""
    return str(to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP))


def multiply_to_minor_units(quantity: Decimal, price_cents: int) -> int:
    """數量 × 單價（分），結果四捨五入為整數分"""
    return round_half_up(quantity * Decimal(price_cents))


def format_quantity(quantity: Decimal) -> str:
    """數量字串，去除多餘的尾端零，例如 10.00000000 -> "10"、0.10000000 -> "0.1" """
    if quantity == 0:
        return "0"
    return format(quantity.normalize(), "f")


def count_decimal_places(value: Decimal) -> int:
    """計算小數位數（忽略尾端零）"""
    exponent = value.normalize().as_tuple().exponent
    return max(0, -exponent) if isinstance(exponent, int) else 0


def percentage_of(value_cents: int, total_cents: int) -> Decimal:
    """占總值的百分比（四位小數）；總值不為正時為 0"""
    if total_cents <= 0:
        return Decimal("0")
    return (Decimal(value_cents) * 100 / Decimal(total_cents)).quantize(
        PERCENTAGE_PLACES, rounding=ROUND_HALF_UP
    )
