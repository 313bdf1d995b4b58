"""
每日快照 API 路由
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_ledger.api.auth import get_current_user
from portfolio_ledger.database import get_db
from portfolio_ledger.models.user import User
from portfolio_ledger.schemas.common import ApiResponse
from portfolio_ledger.schemas.snapshot import (
    SnapshotListQuery,
    SnapshotListResponse,
    SnapshotResponse,
)
from portfolio_ledger.services.snapshot_service import SnapshotService

router = APIRouter(prefix="/snapshots", tags=["快照"])


@router.post("/", response_model=ApiResponse[SnapshotResponse])
async def create_snapshot(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """建立今日快照（同一天重複呼叫會覆寫）"""
    snapshot = await SnapshotService(db).create_snapshot(user.id)
    return ApiResponse(data=snapshot, message="快照已建立")


@router.get("/", response_model=ApiResponse[SnapshotListResponse])
async def list_snapshots(
    query: SnapshotListQuery = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return ApiResponse(data=await SnapshotService(db).list_snapshots(user.id, query))


@router.get("/{snapshot_id}", response_model=ApiResponse[SnapshotResponse])
async def get_snapshot(
    snapshot_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return ApiResponse(data=await SnapshotService(db).get_snapshot(user.id, snapshot_id))
