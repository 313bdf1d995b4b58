"""Portfolio Ledger ORM Models 套件"""

from portfolio_ledger.models.user import User
from portfolio_ledger.models.asset import Asset
from portfolio_ledger.models.holding import Holding
from portfolio_ledger.models.transaction import Transaction, TransactionType
from portfolio_ledger.models.snapshot import PortfolioSnapshot, SnapshotAsset

__all__ = [
    "User",
    "Asset",
    "Holding",
    "Transaction",
    "TransactionType",
    "PortfolioSnapshot",
    "SnapshotAsset",
]
