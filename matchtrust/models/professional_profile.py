# matchtrust/models/professional_profile.py
from sqlalchemy import Column, String, TEXT, ForeignKey, DECIMAL, INT, CHAR
from sqlalchemy.orm import relationship
from matchtrust.core.database import Base

class ProfessionalProfile(Base):
    __tablename__ = "professional_profiles"
    profile_id = Column(CHAR(36), primary_key=True)
    user_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="CASCADE"), unique=True, nullable=False, index=True)
    headline = Column(String(255))
    bio = Column(TEXT)

    # --- 評分彙總 (只由 RatingAggregator 全量重算，不做增量更新) ---
    rating = Column(DECIMAL(2, 1), default=0, nullable=False)
    review_count = Column(INT, default=0, nullable=False)

    # 1-to-1 反向關聯到 User
    user = relationship("User", back_populates="professional_profile")
