# matchtrust/models/job.py
import uuid
from sqlalchemy import Column, String, TIMESTAMP, ForeignKey, CHAR, func
from matchtrust.core.database import Base

class Job(Base):
    """
    由工作子系統擁有
    完成確認 (Completion Coordinator) 只讀寫下面四個欄位與 status
    """
    __tablename__ = "jobs"

    job_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id = Column(CHAR(36), ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255))
    status = Column(String(50), default="in_progress", nullable=False)

    # --- 雙向完成確認 ---
    completion_requested_by = Column(CHAR(36), ForeignKey("users.user_id"), nullable=True)
    completion_requested_at = Column(TIMESTAMP, nullable=True)
    completion_confirmed_by = Column(CHAR(36), ForeignKey("users.user_id"), nullable=True)
    completion_confirmed_at = Column(TIMESTAMP, nullable=True)

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    @property
    def is_completion_confirmed(self) -> bool:
        return bool(self.completion_confirmed_by and self.completion_confirmed_at)
