"""
投資組合 API 路由

淨值摘要、帳務比對。
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_ledger.api.auth import get_current_user
from portfolio_ledger.database import get_db
from portfolio_ledger.models.user import User
from portfolio_ledger.schemas.common import ApiResponse
from portfolio_ledger.schemas.portfolio import PortfolioSummary, ReconciliationResult
from portfolio_ledger.services.portfolio_service import PortfolioService
from portfolio_ledger.services.reconciliation_service import ReconciliationService

router = APIRouter(prefix="/portfolio", tags=["投資組合"])
ledger_router = APIRouter(prefix="/ledger", tags=["維護"])


@router.get("/summary", response_model=ApiResponse[PortfolioSummary])
async def get_summary(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """取得投資組合淨值摘要"""
    return ApiResponse(data=await PortfolioService(db).get_summary(user.id))


@ledger_router.get("/reconcile", response_model=ApiResponse[ReconciliationResult])
async def reconcile(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """比對持倉數量與交易紀錄（唯讀）"""
    return ApiResponse(data=await ReconciliationService(db).reconcile(user.id))
