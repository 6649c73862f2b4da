# models/project.py
from sqlalchemy import Column, String, TEXT, TIMESTAMP, ForeignKey, CHAR, func
from sqlalchemy.orm import relationship
from matchtrust.core.database import Base

class Project(Base):
    # 由案件子系統擁有，這裡只需要擁有者 (client_id) 供建立 Match 時驗證
    __tablename__ = "projects"

    project_id = Column(CHAR(36), primary_key=True)
    client_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True) 
    title = Column(String(255), nullable=False)
    description = Column(TEXT)
    status = Column(String(50), default="open")
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    client = relationship("User")

    proposals = relationship(
        "Proposal", 
        back_populates="project",
        cascade="all, delete-orphan"
    )
