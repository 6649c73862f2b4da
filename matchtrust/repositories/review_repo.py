# matchtrust/repositories/review_repo.py

from datetime import datetime
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import joinedload
from typing import List, Optional, Tuple

from matchtrust.models.review import MatchReview, ReviewStateEnum


class ReviewRepository:
    """
    封裝對 'match_reviews' 資料表的存取
    除了管理員審核 (hard_delete) 之外，查詢一律排除軟刪除的評價
    """
    def __init__(self, db: AsyncSession):
        self.db = db

    def _live(self):
        return MatchReview.state != ReviewStateEnum.deleted_by_author

    async def add_review(self, review: MatchReview) -> MatchReview:
        """
        (C) 新增評價並 flush
        違反唯一約束時 flush 會拋出 IntegrityError，由 Service 轉成 ConflictError
        """
        self.db.add(review)
        await self.db.flush()
        return review

    async def get_review_by_id(self, review_id: str) -> Optional[MatchReview]:
        """
        (R) 依 ID 取得評價 (包含已軟刪除的，供 Service 判斷狀態)，並載入 match
        """
        stmt = (
            select(MatchReview)
            .where(MatchReview.review_id == review_id)
            .options(joinedload(MatchReview.match))
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_review_detail(self, review_id: str) -> Optional[MatchReview]:
        stmt = (
            select(MatchReview)
            .where(MatchReview.review_id == review_id)
            .options(
                joinedload(MatchReview.reviewer),
                joinedload(MatchReview.reviewed_user),
                joinedload(MatchReview.match),
            )
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_live_review(self, match_id: str, reviewer_id: str) -> Optional[MatchReview]:
        """
        (R) 某評價者在某 match 的有效 (未刪除) 評價
        """
        stmt = select(MatchReview).where(
            MatchReview.match_id == match_id,
            MatchReview.reviewer_id == reviewer_id,
            self._live(),
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list_by_match(self, match_id: str) -> List[MatchReview]:
        stmt = (
            select(MatchReview)
            .where(MatchReview.match_id == match_id, self._live())
            .options(joinedload(MatchReview.reviewer), joinedload(MatchReview.reviewed_user))
            .order_by(MatchReview.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def list_for_reviewed_user(self, user_id: str) -> List[MatchReview]:
        """
        (R) 某使用者收到的所有有效評價 (統計 / 評分重算用)
        """
        stmt = select(MatchReview).where(
            MatchReview.reviewed_user_id == user_id,
            self._live(),
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def page_for_reviewed_user(
        self, user_id: str, limit: int, offset: int
    ) -> Tuple[List[MatchReview], int]:
        """
        (R) 分頁列出某使用者收到的評價 (新到舊)，並回傳總數
        """
        conditions = (MatchReview.reviewed_user_id == user_id, self._live())
        stmt = (
            select(MatchReview)
            .where(*conditions)
            .options(joinedload(MatchReview.reviewer), joinedload(MatchReview.reviewed_user))
            .order_by(MatchReview.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(stmt)
        total = await self.db.scalar(select(func.count()).select_from(MatchReview).where(*conditions))
        return result.scalars().all(), total

    async def page_all(self, limit: int, offset: int) -> Tuple[List[MatchReview], int]:
        """
        (R) 管理員審核列表：所有有效評價 (新到舊)
        """
        stmt = (
            select(MatchReview)
            .where(self._live())
            .options(joinedload(MatchReview.reviewer), joinedload(MatchReview.reviewed_user))
            .order_by(MatchReview.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(stmt)
        total = await self.count_live()
        return result.scalars().all(), total

    async def count_live(self, since: Optional[datetime] = None) -> int:
        stmt = select(func.count()).select_from(MatchReview).where(self._live())
        if since is not None:
            stmt = stmt.where(MatchReview.created_at >= since)
        return await self.db.scalar(stmt)

    async def average_overall(self) -> Optional[float]:
        stmt = select(func.avg(MatchReview.overall_rating)).where(self._live())
        return await self.db.scalar(stmt)

    async def save(self, review: MatchReview) -> MatchReview:
        await self.db.flush()
        return review

    async def hard_delete(self, review: MatchReview) -> None:
        """
        (D) 實體刪除 (僅限管理員審核使用)
        """
        await self.db.delete(review)
        await self.db.flush()
