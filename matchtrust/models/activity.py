# matchtrust/models/activity.py

import uuid
from sqlalchemy import Column, String, JSON, SMALLINT, TIMESTAMP, ForeignKey, CHAR, func
from matchtrust.core.database import Base


class UserActivity(Base):
    """使用者敏感操作的稽核紀錄 (例如電話號碼揭露)"""
    __tablename__ = "user_activities"

    activity_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    action = Column(String(100), nullable=False)
    resource_type = Column(String(50), nullable=False)
    resource_id = Column(CHAR(36), nullable=False, index=True)
    details = Column(JSON)
    created_at = Column(TIMESTAMP, server_default=func.now())


class ReviewModerationAction(Base):
    """
    管理員審核決策紀錄 (approve / reject)
    reject 會實體刪除評價，因此這裡不對 review_id 建 FK，並保留快照欄位
    """
    __tablename__ = "review_moderation_actions"

    action_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    review_id = Column(CHAR(36), nullable=False, index=True)
    admin_id = Column(CHAR(36), ForeignKey("users.user_id"), nullable=False, index=True)
    decision = Column(String(20), nullable=False) # approved / rejected
    reason = Column(String(500))
    reviewed_user_id = Column(CHAR(36), nullable=True)
    overall_rating = Column(SMALLINT, nullable=True)
    created_at = Column(TIMESTAMP, server_default=func.now())
