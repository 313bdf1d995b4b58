"""
API 路由集中註冊
"""

from fastapi import APIRouter

from portfolio_ledger.api.assets import router as assets_router
from portfolio_ledger.api.assets import holdings_router, prices_router
from portfolio_ledger.api.contributions import router as contributions_router
from portfolio_ledger.api.portfolio import router as portfolio_router
from portfolio_ledger.api.portfolio import ledger_router
from portfolio_ledger.api.snapshots import router as snapshots_router
from portfolio_ledger.api.transaction import router as transaction_router
from portfolio_ledger.schemas.common import ErrorResponse

# 業務錯誤統一格式，列入 OpenAPI 文件
_error_responses = {
    status_code: {"model": ErrorResponse}
    for status_code in (400, 403, 404, 409, 500)
}

api_router = APIRouter(prefix="/api", responses=_error_responses)
api_router.include_router(assets_router)
api_router.include_router(holdings_router)
api_router.include_router(prices_router)
api_router.include_router(transaction_router)
api_router.include_router(contributions_router)
api_router.include_router(snapshots_router)
api_router.include_router(portfolio_router)
api_router.include_router(ledger_router)
