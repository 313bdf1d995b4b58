"""跨 PostgreSQL 與 SQLite 的自訂欄位型別"""

from decimal import Decimal

from sqlalchemy import Numeric, String, TypeDecorator

QUANTITY_PRECISION = 28
QUANTITY_SCALE = 8
QUANTITY_PLACES = Decimal(1).scaleb(-QUANTITY_SCALE)


class Quantity(TypeDecorator):
    """
    數量欄位（最多 20 位整數、8 位小數）

    PostgreSQL 使用 NUMERIC(28, 8)。SQLite 的 NUMERIC 會轉成 double，
    超過約 15 位有效數字就失真，因此改存固定 8 位小數的字串；
    所有值都先量化成同一格式，等值比較（例如 quantity = 0）仍然成立。
    """

    impl = Numeric(precision=QUANTITY_PRECISION, scale=QUANTITY_SCALE)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(QUANTITY_PRECISION + 2))
        return dialect.type_descriptor(
            Numeric(precision=QUANTITY_PRECISION, scale=QUANTITY_SCALE)
        )

    def process_bind_param(self, value, dialect):
        if value is None or dialect.name != "sqlite":
            return value
        value = Decimal(str(value)).quantize(QUANTITY_PLACES)
        if value == 0:
            # -0 會寫成 "-0.00000000"，違反 quantity >= 0 約束
            value = abs(value)
        return format(value, "f")

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        return Decimal(value) if isinstance(value, str) else value
