"""
交易 API 路由

新增買賣交易、交易紀錄查詢。
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_ledger.api.auth import get_current_user
from portfolio_ledger.database import get_db
from portfolio_ledger.models.user import User
from portfolio_ledger.schemas.common import ApiResponse
from portfolio_ledger.schemas.transaction import (
    TransactionCreate,
    TransactionListQuery,
    TransactionListResponse,
    TransactionResponse,
)
from portfolio_ledger.services.ledger_service import LedgerService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/transactions", tags=["交易"])


@router.post("/", response_model=ApiResponse[TransactionResponse])
async def create_transaction(
    data: TransactionCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    新增交易紀錄

    同時更新持倉數量；賣出數量超過持倉時回傳 400。
    """
    tx = await LedgerService(db).record_transaction(user.id, data)
    return ApiResponse(data=tx, message="交易已新增")


@router.get("/", response_model=ApiResponse[TransactionListResponse])
async def list_transactions(
    query: TransactionListQuery = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """取得交易紀錄，可依資產、類型、日期區間篩選"""
    return ApiResponse(data=await LedgerService(db).list_transactions(user.id, query))


@router.get("/{tx_id}", response_model=ApiResponse[TransactionResponse])
async def get_transaction(
    tx_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return ApiResponse(data=await LedgerService(db).get_transaction(user.id, tx_id))
