"""
資產 API 路由

資產 CRUD、目標比例批次更新、持倉設定與報價更新。
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_ledger.api.auth import get_current_user
from portfolio_ledger.database import get_db
from portfolio_ledger.models.user import User
from portfolio_ledger.schemas.asset import (
    AssetCreate,
    AssetResponse,
    AssetUpdate,
    BatchPriceResult,
    BatchPricesUpdate,
    BatchTargetsUpdate,
    HoldingResponse,
    HoldingSet,
    HoldingSetResult,
    PriceResponse,
    PriceUpdate,
)
from portfolio_ledger.schemas.common import ApiResponse
from portfolio_ledger.services.asset_service import AssetService
from portfolio_ledger.services.holding_service import HoldingService
from portfolio_ledger.services.price_service import PriceService

router = APIRouter(prefix="/assets", tags=["資產"])
holdings_router = APIRouter(prefix="/holdings", tags=["持倉"])
prices_router = APIRouter(prefix="/prices", tags=["報價"])


@router.post("/", response_model=ApiResponse[AssetResponse])
async def create_asset(
    data: AssetCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """建立資產"""
    asset = await AssetService(db).create_asset(user.id, data)
    return ApiResponse(data=asset, message="資產已建立")


@router.get("/", response_model=ApiResponse[list[AssetResponse]])
async def list_assets(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """取得用戶所有資產"""
    return ApiResponse(data=await AssetService(db).list_assets(user.id))


# 必須放在 /{asset_id} 之前，避免被攔截
@router.put("/targets", response_model=ApiResponse[list[AssetResponse]])
async def batch_update_targets(
    data: BatchTargetsUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """批次更新目標比例"""
    assets = await AssetService(db).batch_update_targets(user.id, data.targets)
    return ApiResponse(data=assets, message="目標比例已更新")


@router.get("/{asset_id}", response_model=ApiResponse[AssetResponse])
async def get_asset(
    asset_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return ApiResponse(data=await AssetService(db).get_asset(user.id, asset_id))


@router.put("/{asset_id}", response_model=ApiResponse[AssetResponse])
async def update_asset(
    asset_id: str,
    data: AssetUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    asset = await AssetService(db).update_asset(user.id, asset_id, data)
    return ApiResponse(data=asset, message="資產已更新")


@router.delete("/{asset_id}", response_model=ApiResponse[bool])
async def delete_asset(
    asset_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """刪除資產（連帶刪除持倉與交易紀錄）"""
    await AssetService(db).delete_asset(user.id, asset_id)
    return ApiResponse(data=True, message="資產已刪除")


# === 持倉路由 ===


@holdings_router.get("/", response_model=ApiResponse[list[HoldingResponse]])
async def list_holdings(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return ApiResponse(data=await HoldingService(db).list_holdings(user.id))


@holdings_router.put("/", response_model=ApiResponse[HoldingSetResult])
async def set_holding(
    data: HoldingSet,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """直接設定持倉數量"""
    result = await HoldingService(db).set_holding(user.id, data.asset_id, data.quantity)
    return ApiResponse(
        data=result,
        message="持倉已建立" if result.is_new else "持倉已更新",
    )


# === 報價路由 ===


@prices_router.put("/batch", response_model=ApiResponse[BatchPriceResult])
async def batch_update_prices(
    data: BatchPricesUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """批次更新報價（全部成功或全部不套用）"""
    result = await PriceService(db).batch_update_prices(user.id, data.prices)
    return ApiResponse(data=result, message=f"已更新 {result.updated} 筆報價")


@prices_router.put("/{asset_id}", response_model=ApiResponse[PriceResponse])
async def update_price(
    asset_id: str,
    data: PriceUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    price = await PriceService(db).update_price(user.id, asset_id, data.price)
    return ApiResponse(data=price, message="報價已更新")
