# matchtrust/models/proposal.py
import uuid
from sqlalchemy import Column, String, Text, ForeignKey, TIMESTAMP, CHAR, func
from sqlalchemy.orm import relationship
from matchtrust.core.database import Base

class Proposal(Base):
    __tablename__ = "proposals"

    proposal_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    
    project_id = Column(CHAR(36), ForeignKey("projects.project_id"), nullable=False, index=True)
    professional_id = Column(CHAR(36), ForeignKey("users.user_id"), nullable=False, index=True)
    
    message = Column(Text)
    # submitted / accepted / rejected (接受提案由外部流程處理)
    status = Column(String(50), default="submitted") 
    
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    project = relationship("Project", back_populates="proposals")
    professional = relationship("User")

    # 1-to-1 關聯到 Match
    match = relationship(
        "Match",
        back_populates="proposal",
        uselist=False # 確保是 1-to-1
    )
