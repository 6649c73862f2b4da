# matchtrust/schemas/review_schema.py

from pydantic import BaseModel, ConfigDict, Field
from typing import Annotated, List, Optional
from datetime import datetime

from matchtrust.models.review import ReviewStateEnum
from matchtrust.schemas.user_schema import UserSummary

COMMENT_MAX_LENGTH = 1000

# 評分欄位型別：1~5 的整數
Rating = Annotated[int, Field(ge=1, le=5)]

# --- 建立 ---
class ReviewCreate(BaseModel):
    overall_rating: Rating
    communication_rating: Optional[Rating] = None
    quality_rating: Optional[Rating] = None
    professionalism_rating: Optional[Rating] = None
    timeliness_rating: Optional[Rating] = None
    comment: Optional[str] = Field(None, max_length=COMMENT_MAX_LENGTH)

# --- 修改 (全為選填，只套用有傳入的欄位) ---
class ReviewUpdate(BaseModel):
    overall_rating: Optional[Rating] = None
    communication_rating: Optional[Rating] = None
    quality_rating: Optional[Rating] = None
    professionalism_rating: Optional[Rating] = None
    timeliness_rating: Optional[Rating] = None
    comment: Optional[str] = Field(None, max_length=COMMENT_MAX_LENGTH)

class ReviewDelete(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)

# --- 輸出 ---
class ReviewOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    review_id: str
    match_id: str
    reviewer_id: str
    reviewed_user_id: str
    overall_rating: int
    communication_rating: Optional[int] = None
    quality_rating: Optional[int] = None
    professionalism_rating: Optional[int] = None
    timeliness_rating: Optional[int] = None
    comment: Optional[str] = None
    verified_match: bool
    state: ReviewStateEnum
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class ReviewDetailOut(ReviewOut):
    # (巢狀) 評價者與被評價者摘要
    reviewer: Optional[UserSummary] = None
    reviewed_user: Optional[UserSummary] = None

class ReviewPage(BaseModel):
    reviews: List[ReviewDetailOut]
    total: int
    limit: int
    offset: int

class ReviewStatusOut(BaseModel):
    match_id: str
    client_reviewed: bool
    professional_reviewed: bool
    both_reviewed: bool
    client_review: Optional[ReviewOut] = None
    professional_review: Optional[ReviewOut] = None

class CanReviewOut(BaseModel):
    can_review: bool

# --- 統計 ---
class RatingDistribution(BaseModel):
    five_star: int = 0
    four_star: int = 0
    three_star: int = 0
    two_star: int = 0
    one_star: int = 0

class ReviewStatsOut(BaseModel):
    total_reviews: int
    average_overall_rating: float
    average_communication_rating: float
    average_quality_rating: float
    average_professionalism_rating: float
    average_timeliness_rating: float
    rating_distribution: RatingDistribution

    @classmethod
    def empty(cls) -> "ReviewStatsOut":
        """沒有任何評價時回傳全 0 的結構"""
        return cls(
            total_reviews=0,
            average_overall_rating=0.0,
            average_communication_rating=0.0,
            average_quality_rating=0.0,
            average_professionalism_rating=0.0,
            average_timeliness_rating=0.0,
            rating_distribution=RatingDistribution(),
        )

class RatingSummaryOut(BaseModel):
    user_id: str
    rating: float
    review_count: int

# --- 管理員審核 ---
class ModerationReject(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)

class ModerationResult(BaseModel):
    review_id: str
    decision: str
    decided_by: str
    decided_at: datetime
    reason: Optional[str] = None

class ModerationStatsOut(BaseModel):
    total_reviews: int
    reviews_this_month: int
    average_rating: float
    approved_count: int
    rejected_count: int
