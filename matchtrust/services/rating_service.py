# matchtrust/services/rating_service.py

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from matchtrust.repositories.profile_repo import ProfileRepository
from matchtrust.repositories.review_repo import ReviewRepository
from matchtrust.schemas.review_schema import RatingSummaryOut

logger = logging.getLogger(__name__)

ONE_DECIMAL = Decimal("0.1")


def round_mean(values: Iterable[Optional[int]]) -> float:
    """
    平均值四捨五入到小數一位 (忽略 None)；沒有任何值時回傳 0
    """
    present = [v for v in values if v is not None]
    if not present:
        return 0.0
    mean = Decimal(sum(present)) / Decimal(len(present))
    return float(mean.quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP))


class RatingAggregator:
    """
    重新計算專業人員的評分彙總 (rating / review_count)
    永遠從目前有效的評價全量重算，不做增量更新，避免編輯/刪除/審核後產生偏差
    """
    def __init__(self, db: AsyncSession):
        self.db = db
        self.review_repo = ReviewRepository(db)
        self.profile_repo = ProfileRepository(db)

    async def recompute(self, user_id: str) -> RatingSummaryOut:
        """
        (注意) 只 flush，不 commit；由呼叫端的 Unit of Work 一起提交
        """
        reviews = await self.review_repo.list_for_reviewed_user(user_id)
        summary = RatingSummaryOut(
            user_id=user_id,
            rating=round_mean(r.overall_rating for r in reviews),
            review_count=len(reviews),
        )

        profile = await self.profile_repo.get_professional_profile_by_user_id(user_id)
        if profile is None:
            # 被評價者是客戶 (沒有專業人員 Profile)，沒有彙總欄位可寫
            logger.debug(f"User {user_id} 沒有專業人員 Profile，略過評分彙總寫入")
            return summary

        profile.rating = Decimal(str(summary.rating))
        profile.review_count = summary.review_count
        await self.profile_repo.save(profile)
        logger.info(f"重算 User {user_id} 評分: {summary.rating} ({summary.review_count} 則)")
        return summary
