# matchtrust/routers/notification_router.py

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from matchtrust.core.database import get_db
from matchtrust.core.security import get_current_user
from matchtrust.models.user import User
from matchtrust.schemas.notification_schema import NotificationOut, UnreadCountOut
from matchtrust.services.notification_service import NotificationService

router = APIRouter(
    prefix="/notifications",
    tags=["Notifications"]
)

def get_notification_service(db: AsyncSession = Depends(get_db)) -> NotificationService:
    return NotificationService(db)


@router.get("/my", response_model=List[NotificationOut], summary="我的通知 (媒合 / 完成 / 評價)")
async def api_get_my_notifications(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(get_current_user)
):
    """
    新到舊。前端以輪詢取得新的媒合、完成確認與評價通知。
    """
    return await service.get_my_notifications(current_user, limit, offset)

@router.get("/my/unread-count", response_model=UnreadCountOut, summary="未讀通知數量")
async def api_get_unread_count(
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(get_current_user)
):
    return UnreadCountOut(unread_count=await service.get_unread_count(current_user))

@router.patch("/my/read-all", response_model=UnreadCountOut, summary="全部設為已讀")
async def api_mark_all_as_read(
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(get_current_user)
):
    await service.mark_all_as_read(current_user)
    return UnreadCountOut(unread_count=0)

@router.patch("/{notification_id}/read", response_model=NotificationOut, summary="將通知設為已讀")
async def api_mark_as_read(
    notification_id: str,
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(get_current_user)
):
    return await service.mark_notification_as_read(notification_id, current_user)

@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT, summary="刪除我的通知")
async def api_delete_notification(
    notification_id: str,
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(get_current_user)
):
    await service.delete_notification(notification_id, current_user)
    return None # 204 No Content
