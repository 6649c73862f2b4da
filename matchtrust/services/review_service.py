# matchtrust/services/review_service.py

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Callable, Dict, List, Optional
from datetime import datetime, timedelta
import logging

from matchtrust.core.database import commit_or_raise
from matchtrust.core.events import DomainEvent, EventCollector, NotificationKind
from matchtrust.core.exceptions import (
    ConflictError, ForbiddenError, NotFoundError, PreconditionFailedError, ValidationError
)
from matchtrust.models.match import Match, MatchStatusEnum
from matchtrust.models.review import MatchReview, ReviewStateEnum, RATING_FIELDS, SUB_RATING_FIELDS
from matchtrust.repositories.job_repo import JobRepository
from matchtrust.repositories.match_repo import MatchRepository
from matchtrust.repositories.review_repo import ReviewRepository
from matchtrust.repositories.user_repo import UserRepository
from matchtrust.schemas.review_schema import (
    COMMENT_MAX_LENGTH, RatingDistribution, ReviewCreate, ReviewDetailOut, ReviewOut, ReviewPage,
    ReviewStatsOut, ReviewStatusOut, ReviewUpdate
)
from matchtrust.services.rating_service import RatingAggregator, round_mean
from matchtrust.utils.time import utcnow

logger = logging.getLogger(__name__)

REVIEW_EDIT_WINDOW = timedelta(hours=24)
MIN_RATING, MAX_RATING = 1, 5
DEFAULT_DELETE_REASON = "User requested deletion"


def validate_ratings(values: Dict[str, Optional[int]]) -> None:
    """所有「有給值」的評分都必須在 1~5 之間"""
    for field, value in values.items():
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, int) or not MIN_RATING <= value <= MAX_RATING:
            raise ValidationError(f"評分必須介於 {MIN_RATING} 到 {MAX_RATING} 之間 ({field})")


def validate_comment(comment: Optional[str]) -> None:
    if comment is not None and len(comment) > COMMENT_MAX_LENGTH:
        raise ValidationError(f"評論不可超過 {COMMENT_MAX_LENGTH} 個字元")


class ReviewService(EventCollector):
    def __init__(self, db: AsyncSession, clock: Callable[[], datetime] = utcnow):
        super().__init__()
        self.db = db
        self.clock = clock
        self.match_repo = MatchRepository(db)
        self.job_repo = JobRepository(db)
        self.review_repo = ReviewRepository(db)
        self.user_repo = UserRepository(db)
        self.aggregator = RatingAggregator(db)

    # --- 完成狀態判斷 ---
    async def _completion_confirmed(self, match: Match, strict: bool = False) -> bool:
        """
        有 job_id 的 match：job 的 completion_confirmed_by / _at 都必須有值
        沒有 job_id 的舊資料：只能看 match.status 是否為 completed
        strict=True 時，job 不存在會拋出 NotFoundError
        """
        if match.job_id:
            job = await self.job_repo.get_job_by_id(match.job_id)
            if job is None:
                if strict:
                    raise NotFoundError("找不到此 match 關聯的工作")
                return False
            return job.is_completion_confirmed
        return match.status == MatchStatusEnum.completed

    async def _get_match(self, match_id: str) -> Match:
        match = await self.match_repo.get_match_by_id(match_id)
        if not match:
            raise NotFoundError("Match 不存在")
        return match

    async def _counterparty_reviewed(self, review: MatchReview) -> bool:
        counterparty_id = review.match.counterparty_of(review.reviewer_id)
        return await self.review_repo.get_live_review(review.match_id, counterparty_id) is not None

    async def _get_modifiable_review(self, review_id: str, user_id: str) -> MatchReview:
        """
        作者本人的編輯/刪除資格檢查 (依 review.state 判斷)
        雙方都評價後即凍結，避免報復性修改
        """
        review = await self.review_repo.get_review_by_id(review_id)
        if not review:
            raise NotFoundError("評價不存在")
        if review.reviewer_id != user_id:
            raise ForbiddenError("你只能修改自己的評價")

        if ReviewStateEnum(review.state) == ReviewStateEnum.deleted_by_author:
            raise ConflictError("此評價已被刪除")

        if await self._counterparty_reviewed(review):
            raise PreconditionFailedError("對方已經評價，無法再修改或刪除你的評價")
        return review

    # --- 建立 ---
    async def create_review(self, match_id: str, reviewer_id: str, data: ReviewCreate) -> MatchReview:
        """
        雙方確認完成後，參與者可對另一方留下一則評價
        """
        match = await self._get_match(match_id)
        if not match.is_participant(reviewer_id):
            raise ForbiddenError("你不是此 match 的參與者")

        reviewed_user_id = match.counterparty_of(reviewer_id)

        if await self.review_repo.get_live_review(match_id, reviewer_id):
            raise ConflictError("你已經評價過此 match")

        if not await self._completion_confirmed(match, strict=True):
            if match.job_id:
                raise PreconditionFailedError("雙方都必須確認服務完成後才能評價，請等待對方確認")
            raise PreconditionFailedError("Match 必須標記為完成後才能評價")

        ratings = {field: getattr(data, field) for field in RATING_FIELDS}
        if ratings["overall_rating"] is None:
            raise ValidationError("必須提供整體評分")
        validate_ratings(ratings)
        validate_comment(data.comment)

        now = self.clock()
        review = MatchReview(
            match_id=match_id,
            reviewer_id=reviewer_id,
            reviewed_user_id=reviewed_user_id,
            comment=data.comment,
            verified_match=True,
            state=ReviewStateEnum.active,
            is_current=True,
            created_at=now,
            updated_at=now,
            **ratings,
        )
        try:
            await self.review_repo.add_review(review)
        except IntegrityError:
            # 兩個請求同時通過存在檢查時，由唯一約束擋下
            await self.db.rollback()
            raise ConflictError("你已經評價過此 match")

        await self.aggregator.recompute(reviewed_user_id)
        await commit_or_raise(self.db)
        logger.info(f"Match {match_id}: {reviewer_id} 評價了 {reviewed_user_id} ({review.overall_rating} 星)")

        reviewer = await self.user_repo.get_user_by_id(reviewer_id)
        reviewer_name = (reviewer.name if reviewer else None) or "一位使用者"
        self._emit(DomainEvent(
            user_id=reviewed_user_id,
            kind=NotificationKind.review_received,
            title=f"{reviewer_name} 給了你評價",
            message="查看你在最近一次媒合中收到的評價",
            action_url=f"/matches/{match_id}",
        ))
        return review

    # --- 修改 ---
    async def update_review(self, review_id: str, acting_user_id: str, patch: ReviewUpdate) -> MatchReview:
        """
        只有作者本人、建立後 24 小時內、且對方尚未評價時可以修改
        """
        review = await self._get_modifiable_review(review_id, acting_user_id)

        if self.clock() - review.created_at > REVIEW_EDIT_WINDOW:
            raise PreconditionFailedError("評價只能在建立後 24 小時內修改")

        changes = patch.model_dump(exclude_unset=True)
        if "overall_rating" in changes and changes["overall_rating"] is None:
            raise ValidationError("整體評分不可清除")
        validate_ratings({k: v for k, v in changes.items() if k in RATING_FIELDS})
        validate_comment(changes.get("comment"))

        for key, value in changes.items():
            setattr(review, key, value)
        review.state = ReviewStateEnum.edited
        review.updated_at = self.clock()

        await self.review_repo.save(review)
        await self.aggregator.recompute(review.reviewed_user_id)
        await commit_or_raise(self.db)
        logger.info(f"評價 {review_id} 已由作者修改")
        return review

    # --- 刪除 (軟刪除) ---
    async def delete_review(self, review_id: str, acting_user_id: str, reason: Optional[str] = None) -> None:
        review = await self._get_modifiable_review(review_id, acting_user_id)

        now = self.clock()
        review.state = ReviewStateEnum.deleted_by_author
        review.is_current = None
        review.deleted_at = now
        review.deleted_by_user_id = acting_user_id
        review.deleted_reason = reason or DEFAULT_DELETE_REASON
        review.updated_at = now

        await self.review_repo.save(review)
        await self.aggregator.recompute(review.reviewed_user_id)
        await commit_or_raise(self.db)
        logger.info(f"評價 {review_id} 已由作者軟刪除")

    # --- 查詢 ---
    async def get_review_stats(self, user_id: str) -> ReviewStatsOut:
        """
        某使用者收到的評價統計 (排除已刪除)
        子評分的平均只計算有填寫該項的評價
        """
        reviews = await self.review_repo.list_for_reviewed_user(user_id)
        if not reviews:
            return ReviewStatsOut.empty()

        averages = {
            f"average_{field}": round_mean(getattr(r, field) for r in reviews)
            for field in SUB_RATING_FIELDS
        }
        overall = [r.overall_rating for r in reviews]
        return ReviewStatsOut(
            total_reviews=len(reviews),
            average_overall_rating=round_mean(overall),
            rating_distribution=RatingDistribution(
                five_star=overall.count(5),
                four_star=overall.count(4),
                three_star=overall.count(3),
                two_star=overall.count(2),
                one_star=overall.count(1),
            ),
            **averages,
        )

    async def can_leave_review(self, match_id: str, user_id: str) -> bool:
        match = await self.match_repo.get_match_by_id(match_id)
        if not match or not match.is_participant(user_id):
            return False
        if not await self._completion_confirmed(match):
            return False
        return await self.review_repo.get_live_review(match_id, user_id) is None

    async def get_review_status(self, match_id: str) -> ReviewStatusOut:
        match = await self._get_match(match_id)
        reviews = await self.review_repo.list_by_match(match_id)

        client_review = next((r for r in reviews if r.reviewer_id == match.client_id), None)
        professional_review = next((r for r in reviews if r.reviewer_id == match.professional_id), None)

        return ReviewStatusOut(
            match_id=match_id,
            client_reviewed=client_review is not None,
            professional_reviewed=professional_review is not None,
            both_reviewed=client_review is not None and professional_review is not None,
            client_review=ReviewOut.model_validate(client_review) if client_review else None,
            professional_review=ReviewOut.model_validate(professional_review) if professional_review else None,
        )

    async def list_match_reviews(self, match_id: str) -> List[MatchReview]:
        await self._get_match(match_id)
        return await self.review_repo.list_by_match(match_id)

    async def list_user_reviews(self, user_id: str, limit: int = 10, offset: int = 0) -> ReviewPage:
        reviews, total = await self.review_repo.page_for_reviewed_user(user_id, limit, offset)
        return ReviewPage(
            reviews=[ReviewDetailOut.model_validate(r) for r in reviews],
            total=total,
            limit=limit,
            offset=offset,
        )
