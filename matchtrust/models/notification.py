# matchtrust/models/notification.py
# 站內通知收件匣 (由 NotificationDispatcher 在業務交易提交後寫入)

import uuid
from sqlalchemy import Column, String, TEXT, BOOLEAN, CHAR, ForeignKey, TIMESTAMP, Enum, Index, func
from sqlalchemy.orm import relationship
from matchtrust.core.database import Base
from matchtrust.core.events import NotificationKind


class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (
        # 未讀數量 / 收件匣查詢都以 (user_id, is_read) 過濾
        Index("ix_notifications_user_unread", "user_id", "is_read"),
    )

    notification_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)

    kind = Column(
        Enum(NotificationKind, values_callable=lambda obj: [e.value for e in obj], name="notification_kind_enum"),
        nullable=False,
    )
    title = Column(String(255), nullable=False)
    message = Column(TEXT)

    # 點擊通知後導向的前端路徑 (例如 /matches/{match_id})
    link_url = Column(String(500))

    is_read = Column(BOOLEAN, default=False, nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())

    recipient = relationship("User")
