# matchtrust/repositories/notification_repo.py

from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import List, Optional

from matchtrust.models.notification import Notification


class NotificationRepository:
    """
    封裝對 'notifications' 資料表的存取 (只 add / flush，commit 由 Service 決定)
    """
    def __init__(self, db: AsyncSession):
        self.db = db

    async def add_notification(self, notification: Notification) -> Notification:
        self.db.add(notification)
        await self.db.flush()
        # 取回 DB 產生的 created_at
        await self.db.refresh(notification)
        return notification

    async def get_notification_by_id(self, notification_id: str) -> Optional[Notification]:
        stmt = select(Notification).where(Notification.notification_id == notification_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list_notifications_by_user(self, user_id: str, limit: int = 20, offset: int = 0) -> List[Notification]:
        """
        (R) 收件匣，新到舊
        """
        stmt = (
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def count_unread(self, user_id: str) -> int:
        stmt = (
            select(func.count())
            .select_from(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        )
        return await self.db.scalar(stmt)

    async def mark_all_as_read(self, user_id: str) -> int:
        """
        (U) 批次更新，回傳實際被標記的筆數
        """
        stmt = (
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount

    async def delete_notification(self, notification: Notification) -> None:
        """
        (D) 刪除通知 (收件者自行清除)
        """
        await self.db.delete(notification)
        await self.db.flush()
