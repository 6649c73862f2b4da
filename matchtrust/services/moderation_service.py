# matchtrust/services/moderation_service.py
# 管理員審核：可無視作者的編輯/刪除限制，直接移除評價並重算評分

from sqlalchemy.ext.asyncio import AsyncSession
from typing import Callable
from datetime import datetime, timedelta
import logging

from matchtrust.core.database import commit_or_raise
from matchtrust.core.exceptions import NotFoundError
from matchtrust.models.activity import ReviewModerationAction
from matchtrust.models.review import MatchReview
from matchtrust.repositories.activity_repo import ActivityRepository
from matchtrust.repositories.review_repo import ReviewRepository
from matchtrust.schemas.review_schema import (
    ModerationResult, ModerationStatsOut, ReviewDetailOut, ReviewPage
)
from matchtrust.services.rating_service import RatingAggregator
from matchtrust.utils.time import utcnow

logger = logging.getLogger(__name__)

DECISION_APPROVED = "approved"
DECISION_REJECTED = "rejected"


class ReviewModerationService:
    def __init__(self, db: AsyncSession, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.clock = clock
        self.review_repo = ReviewRepository(db)
        self.activity_repo = ActivityRepository(db)
        self.aggregator = RatingAggregator(db)

    async def _get_review(self, review_id: str) -> MatchReview:
        review = await self.review_repo.get_review_detail(review_id)
        if not review:
            raise NotFoundError("評價不存在")
        return review

    async def reject_review(self, review_id: str, admin_id: str, reason: str) -> ModerationResult:
        """
        實體刪除評價並重算被評價者的評分 (以剩下的評價全量重算)
        """
        review = await self._get_review(review_id)
        reviewed_user_id = review.reviewed_user_id
        now = self.clock()

        await self.activity_repo.add_moderation_action(ReviewModerationAction(
            review_id=review_id,
            admin_id=admin_id,
            decision=DECISION_REJECTED,
            reason=reason,
            reviewed_user_id=reviewed_user_id,
            overall_rating=review.overall_rating,
            created_at=now,
        ))
        await self.review_repo.hard_delete(review)
        await self.aggregator.recompute(reviewed_user_id)
        await commit_or_raise(self.db)
        logger.info(f"管理員 {admin_id} 移除評價 {review_id}，原因: {reason}")

        return ModerationResult(
            review_id=review_id,
            decision=DECISION_REJECTED,
            decided_by=admin_id,
            decided_at=now,
            reason=reason,
        )

    async def approve_review(self, review_id: str, admin_id: str) -> ModerationResult:
        """
        目前沒有額外狀態，只留下審核決策紀錄
        """
        review = await self._get_review(review_id)
        now = self.clock()

        await self.activity_repo.add_moderation_action(ReviewModerationAction(
            review_id=review_id,
            admin_id=admin_id,
            decision=DECISION_APPROVED,
            reviewed_user_id=review.reviewed_user_id,
            overall_rating=review.overall_rating,
            created_at=now,
        ))
        await commit_or_raise(self.db)
        logger.info(f"管理員 {admin_id} 核准評價 {review_id}")

        return ModerationResult(
            review_id=review_id,
            decision=DECISION_APPROVED,
            decided_by=admin_id,
            decided_at=now,
        )

    async def list_reviews_for_moderation(self, limit: int = 20, offset: int = 0) -> ReviewPage:
        reviews, total = await self.review_repo.page_all(limit, offset)
        return ReviewPage(
            reviews=[ReviewDetailOut.model_validate(r) for r in reviews],
            total=total,
            limit=limit,
            offset=offset,
        )

    async def get_review_detail(self, review_id: str) -> MatchReview:
        return await self._get_review(review_id)

    async def get_moderation_stats(self) -> ModerationStatsOut:
        month_ago = self.clock() - timedelta(days=30)
        average = await self.review_repo.average_overall()
        return ModerationStatsOut(
            total_reviews=await self.review_repo.count_live(),
            reviews_this_month=await self.review_repo.count_live(since=month_ago),
            average_rating=round(float(average), 1) if average is not None else 0.0,
            approved_count=await self.activity_repo.count_moderation_decisions(DECISION_APPROVED),
            rejected_count=await self.activity_repo.count_moderation_decisions(DECISION_REJECTED),
        )
