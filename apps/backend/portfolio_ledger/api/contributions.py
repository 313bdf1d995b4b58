"""
定期投入配置建議 API 路由
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_ledger.api.auth import get_current_user
from portfolio_ledger.database import get_db
from portfolio_ledger.models.user import User
from portfolio_ledger.schemas.common import ApiResponse
from portfolio_ledger.schemas.contribution import ContributionRequest, ContributionSuggestion
from portfolio_ledger.services.allocation_service import AllocationService

router = APIRouter(prefix="/contributions", tags=["投入配置"])


@router.post("/suggest", response_model=ApiResponse[ContributionSuggestion])
async def suggest_allocation(
    data: ContributionRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """依目標比例與目前偏差，計算投入金額的配置建議"""
    suggestion = await AllocationService(db).suggest_allocation(user.id, data.amount)
    return ApiResponse(data=suggestion)
