# matchtrust/models/match.py

import enum
import uuid
from sqlalchemy import (
    Column, TIMESTAMP, INT, ForeignKey, Enum, CHAR, CheckConstraint, func
)
from sqlalchemy.orm import relationship
from matchtrust.core.database import Base


class MatchStatusEnum(str, enum.Enum):
    active = "active"
    completed = "completed"
    disputed = "disputed"
    cancelled = "cancelled"
    unsuccessful = "unsuccessful"


class Match(Base):
    """
    提案被接受後建立的媒合紀錄
    限定雙方之間的完成確認、電話揭露與評價範圍；永不實體刪除
    """
    __tablename__ = "matches"
    __table_args__ = (
        CheckConstraint("client_id <> professional_id", name="ck_match_distinct_participants"),
    )

    match_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # --- 關聯 ---
    proposal_id = Column(CHAR(36), ForeignKey("proposals.proposal_id", ondelete="RESTRICT"), unique=True, nullable=False, index=True)
    client_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="RESTRICT"), nullable=False, index=True)
    professional_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="RESTRICT"), nullable=False, index=True)
    project_id = Column(CHAR(36), ForeignKey("projects.project_id", ondelete="RESTRICT"), nullable=False, index=True)
    # (可選) 舊資料沒有 job_id，完成與否只能看 status
    job_id = Column(CHAR(36), ForeignKey("jobs.job_id", ondelete="SET NULL"), nullable=True, index=True)

    # --- 狀態管理 ---
    status = Column(
        Enum(MatchStatusEnum, values_callable=lambda obj: [e.value for e in obj], name="match_status_enum"),
        default=MatchStatusEnum.active,
        nullable=False,
    )

    # --- 電話揭露統計 (只增不減) ---
    phone_reveal_count = Column(INT, default=0, nullable=False)
    phone_revealed_at = Column(TIMESTAMP, nullable=True)

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    # --- SQLAlchemy Relationships ---
    proposal = relationship("Proposal", back_populates="match")
    project = relationship("Project")
    job = relationship("Job")

    client = relationship("User", foreign_keys=[client_id])
    professional = relationship("User", foreign_keys=[professional_id])

    def is_participant(self, user_id: str) -> bool:
        return user_id in (self.client_id, self.professional_id)

    def counterparty_of(self, user_id: str) -> str:
        """回傳對方的 user_id (呼叫前須確認 user_id 是參與者)"""
        return self.professional_id if user_id == self.client_id else self.client_id
