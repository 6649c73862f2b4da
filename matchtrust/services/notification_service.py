# matchtrust/services/notification_service.py

from sqlalchemy.ext.asyncio import AsyncSession
from typing import Iterable, List, Optional
import logging

from matchtrust.core.database import commit_or_raise
from matchtrust.core.events import DomainEvent, NotificationKind
from matchtrust.core.exceptions import ForbiddenError, NotFoundError
from matchtrust.models.user import User
from matchtrust.models.notification import Notification
from matchtrust.repositories.notification_repo import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = NotificationRepository(db)

    async def create_notification(
        self,
        user_id: str,
        kind: NotificationKind,
        title: str,
        link_url: Optional[str] = None,
        message: Optional[str] = None
    ) -> Notification:
        """
        (內部使用) 每則通知各自提交，一則失敗不影響其他通知
        """
        notification = await self.repo.add_notification(Notification(
            user_id=user_id,
            kind=kind,
            title=title,
            message=message,
            link_url=link_url,
            is_read=False,
        ))
        await commit_or_raise(self.db)
        logger.info(f"建立通知 for User ID: {user_id}, Kind: {NotificationKind(kind).value}, Link: {link_url}")
        return notification

    async def get_my_notifications(self, user: User, limit: int = 20, offset: int = 0) -> List[Notification]:
        return await self.repo.list_notifications_by_user(user.user_id, limit, offset)

    async def get_unread_count(self, user: User) -> int:
        return await self.repo.count_unread(user.user_id)

    async def mark_notification_as_read(self, notification_id: str, user: User) -> Notification:
        """
        (API 用) 將通知設為已讀，只能標記自己的通知
        """
        notification = await self.repo.get_notification_by_id(notification_id)
        if not notification:
            raise NotFoundError("通知不存在")
        if notification.user_id != user.user_id:
            raise ForbiddenError("無權操作此通知")

        if not notification.is_read:
            notification.is_read = True
            await commit_or_raise(self.db)
        return notification

    async def mark_all_as_read(self, user: User) -> int:
        updated = await self.repo.mark_all_as_read(user.user_id)
        await commit_or_raise(self.db)
        return updated

    async def delete_notification(self, notification_id: str, user: User) -> None:
        """
        (API 用) 刪除自己的通知
        """
        notification = await self.repo.get_notification_by_id(notification_id)
        if not notification:
            raise NotFoundError("通知不存在")
        if notification.user_id != user.user_id:
            raise ForbiddenError("無權操作此通知")

        await self.repo.delete_notification(notification)
        await commit_or_raise(self.db)
        logger.info(f"User {user.user_id} 刪除通知 {notification_id}")


class NotificationDispatcher:
    """
    在主交易提交「之後」才發送 Service 累積的事件
    (fire-and-forget) 任何失敗只記錄 log，不影響已完成的業務操作
    """
    def __init__(self, db: AsyncSession):
        self.db = db
        self.notification_service = NotificationService(db)

    async def dispatch(self, events: Iterable[DomainEvent]) -> int:
        delivered = 0
        for event in events:
            try:
                await self.notification_service.create_notification(
                    user_id=event.user_id,
                    kind=event.kind,
                    title=event.title,
                    message=event.message,
                    link_url=event.action_url,
                )
                delivered += 1
            except Exception as e:
                # flush 失敗會讓 session 停在 PendingRollbackError，必須 rollback 才能處理下一則
                # (業務資料在 dispatch 之前就已提交，不受影響)
                await self.db.rollback()
                logger.error(f"通知發送失敗 (User {event.user_id}, {event.kind.value}): {e}", exc_info=True)
        return delivered
