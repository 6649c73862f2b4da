# matchtrust/routers/moderation_router.py

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from matchtrust.core.database import get_db
from matchtrust.core.security import require_admin
from matchtrust.models.user import User
from matchtrust.schemas.review_schema import (
    ModerationReject, ModerationResult, ModerationStatsOut, ReviewDetailOut, ReviewPage
)
from matchtrust.services.moderation_service import ReviewModerationService

router = APIRouter(
    prefix="/admin/reviews",
    tags=["Review Moderation"],
    # (重要) 只限系統管理員
    dependencies=[Depends(require_admin)]
)

def get_moderation_service(db: AsyncSession = Depends(get_db)) -> ReviewModerationService:
    return ReviewModerationService(db)


@router.get("/", response_model=ReviewPage, summary="待審核評價列表")
async def api_list_reviews(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    service: ReviewModerationService = Depends(get_moderation_service)
):
    return await service.list_reviews_for_moderation(limit, offset)

@router.get("/stats", response_model=ModerationStatsOut, summary="審核統計")
async def api_moderation_stats(
    service: ReviewModerationService = Depends(get_moderation_service)
):
    return await service.get_moderation_stats()

@router.get("/{review_id}", response_model=ReviewDetailOut, summary="評價詳情")
async def api_review_detail(
    review_id: str,
    service: ReviewModerationService = Depends(get_moderation_service)
):
    return await service.get_review_detail(review_id)

@router.put("/{review_id}/approve", response_model=ModerationResult, summary="核准評價")
async def api_approve_review(
    review_id: str,
    service: ReviewModerationService = Depends(get_moderation_service),
    admin: User = Depends(require_admin)
):
    return await service.approve_review(review_id, admin.user_id)

@router.put("/{review_id}/reject", response_model=ModerationResult, summary="移除評價")
async def api_reject_review(
    review_id: str,
    data: ModerationReject,
    service: ReviewModerationService = Depends(get_moderation_service),
    admin: User = Depends(require_admin)
):
    """
    實體刪除評價，並以剩下的評價重算被評價者的評分。
    """
    return await service.reject_review(review_id, admin.user_id, data.reason)
