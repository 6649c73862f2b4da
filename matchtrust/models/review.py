# matchtrust/models/review.py

import enum
import uuid
from sqlalchemy import (
    Column, String, TEXT, TIMESTAMP, SMALLINT, BOOLEAN, ForeignKey, CHAR, Enum,
    CheckConstraint, UniqueConstraint, func
)
from sqlalchemy.orm import relationship
from matchtrust.core.database import Base


class ReviewStateEnum(str, enum.Enum):
    active = "active"
    edited = "edited"
    deleted_by_author = "deleted_by_author"


# 四個可選的子評分欄位
SUB_RATING_FIELDS = (
    "communication_rating",
    "quality_rating",
    "professionalism_rating",
    "timeliness_rating",
)
RATING_FIELDS = ("overall_rating",) + SUB_RATING_FIELDS


class MatchReview(Base):
    __tablename__ = "match_reviews"
    __table_args__ = (
        # (重要) 同一 match、同一評價者只能有一筆「未刪除」的評價
        # is_current: 有效時為 TRUE，軟刪除後設為 NULL (NULL 之間不會衝突)
        UniqueConstraint("match_id", "reviewer_id", "is_current", name="uq_review_match_reviewer_current"),
        CheckConstraint("overall_rating BETWEEN 1 AND 5", name="ck_review_overall_rating"),
        # 細項評分可不填，有填時同樣限制在 1..5
        *(
            CheckConstraint(f"{field} IS NULL OR {field} BETWEEN 1 AND 5", name=f"ck_review_{field}")
            for field in SUB_RATING_FIELDS
        ),
    )

    review_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    match_id = Column(CHAR(36), ForeignKey("matches.match_id", ondelete="RESTRICT"), nullable=False, index=True)
    reviewer_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="RESTRICT"), nullable=False, index=True)
    # 永遠是評價者在該 match 中的對方
    reviewed_user_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="RESTRICT"), nullable=False, index=True)

    # --- 評分 (1~5) ---
    overall_rating = Column(SMALLINT, nullable=False)
    communication_rating = Column(SMALLINT, nullable=True)
    quality_rating = Column(SMALLINT, nullable=True)
    professionalism_rating = Column(SMALLINT, nullable=True)
    timeliness_rating = Column(SMALLINT, nullable=True)

    comment = Column(TEXT, nullable=True)
    verified_match = Column(BOOLEAN, default=True, nullable=False)

    # --- 生命週期 ---
    state = Column(
        Enum(ReviewStateEnum, values_callable=lambda obj: [e.value for e in obj], name="review_state_enum"),
        default=ReviewStateEnum.active,
        nullable=False,
    )
    is_current = Column(BOOLEAN, default=True, nullable=True)

    # 軟刪除稽核欄位
    deleted_at = Column(TIMESTAMP, nullable=True)
    deleted_by_user_id = Column(CHAR(36), ForeignKey("users.user_id"), nullable=True)
    deleted_reason = Column(String(500), nullable=True)

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    match = relationship("Match")
    reviewer = relationship("User", foreign_keys=[reviewer_id])
    reviewed_user = relationship("User", foreign_keys=[reviewed_user_id])

    @property
    def is_deleted(self) -> bool:
        return self.state == ReviewStateEnum.deleted_by_author
