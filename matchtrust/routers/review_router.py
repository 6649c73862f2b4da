# matchtrust/routers/review_router.py

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from matchtrust.core.database import get_db
from matchtrust.core.security import get_current_user
from matchtrust.models.user import User
from matchtrust.schemas.review_schema import (
    CanReviewOut, ReviewCreate, ReviewDelete, ReviewDetailOut, ReviewOut, ReviewPage,
    ReviewStatsOut, ReviewStatusOut, ReviewUpdate
)
from matchtrust.services.notification_service import NotificationDispatcher
from matchtrust.services.review_service import ReviewService

router = APIRouter(
    tags=["Reviews"],
    # (重要) 該模組下的所有 API 都至少需要登入
    dependencies=[Depends(get_current_user)]
)

def get_review_service(db: AsyncSession = Depends(get_db)) -> ReviewService:
    return ReviewService(db)


@router.post(
    "/matches/{match_id}/reviews",
    response_model=ReviewOut,
    status_code=status.HTTP_201_CREATED,
    summary="對 Match 的另一方留下評價"
)
async def api_create_review(
    match_id: str,
    data: ReviewCreate,
    service: ReviewService = Depends(get_review_service),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    雙方都確認完成後才能評價，每人每個 match 只能有一則。
    """
    review = await service.create_review(match_id, current_user.user_id, data)
    # 先轉成回應：通知失敗時 dispatcher 會 rollback，已載入的物件會失效
    out = ReviewOut.model_validate(review)
    await NotificationDispatcher(db).dispatch(service.drain_events())
    return out

@router.get("/matches/{match_id}/reviews", response_model=List[ReviewDetailOut], summary="Match 的所有評價")
async def api_get_match_reviews(
    match_id: str,
    service: ReviewService = Depends(get_review_service)
):
    return await service.list_match_reviews(match_id)

@router.get("/matches/{match_id}/reviews/status", response_model=ReviewStatusOut, summary="雙方評價狀態")
async def api_get_review_status(
    match_id: str,
    service: ReviewService = Depends(get_review_service)
):
    return await service.get_review_status(match_id)

@router.get("/matches/{match_id}/reviews/can-review", response_model=CanReviewOut, summary="我是否可以評價")
async def api_can_review(
    match_id: str,
    service: ReviewService = Depends(get_review_service),
    current_user: User = Depends(get_current_user)
):
    return CanReviewOut(can_review=await service.can_leave_review(match_id, current_user.user_id))

@router.put("/reviews/{review_id}", response_model=ReviewOut, summary="修改我的評價")
async def api_update_review(
    review_id: str,
    data: ReviewUpdate,
    service: ReviewService = Depends(get_review_service),
    current_user: User = Depends(get_current_user)
):
    """
    (作者) 建立後 24 小時內、且對方尚未評價時可以修改。
    """
    return await service.update_review(review_id, current_user.user_id, data)

@router.delete("/reviews/{review_id}", status_code=status.HTTP_204_NO_CONTENT, summary="刪除我的評價")
async def api_delete_review(
    review_id: str,
    data: ReviewDelete | None = None,
    service: ReviewService = Depends(get_review_service),
    current_user: User = Depends(get_current_user)
):
    """
    (作者) 軟刪除，保留稽核紀錄。
    """
    await service.delete_review(review_id, current_user.user_id, data.reason if data else None)
    return None # 204 No Content

@router.get("/users/{user_id}/reviews", response_model=ReviewPage, summary="使用者收到的評價")
async def api_get_user_reviews(
    user_id: str,
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    service: ReviewService = Depends(get_review_service)
):
    return await service.list_user_reviews(user_id, limit, offset)

@router.get("/users/{user_id}/reviews/stats", response_model=ReviewStatsOut, summary="使用者評價統計")
async def api_get_review_stats(
    user_id: str,
    service: ReviewService = Depends(get_review_service)
):
    return await service.get_review_stats(user_id)
