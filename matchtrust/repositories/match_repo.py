# matchtrust/repositories/match_repo.py

from datetime import datetime
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload, joinedload
from sqlalchemy.sql.expression import or_, exists
from typing import List, Optional

from matchtrust.models.match import Match
from matchtrust.models.proposal import Proposal
from matchtrust.models.user import User


class MatchRepository:
    """
    封裝對 'matches' 資料表的存取
    (只負責 add / flush，commit 由 Service 層的 Unit of Work 決定)
    """
    def __init__(self, db: AsyncSession):
        self.db = db

    def _get_common_match_options(self):
        """
        (效能關鍵) 
        MatchOut 需要雙方摘要與專業人員的評分彙總，一次載入避免 N+1 查詢
        """
        return [
            joinedload(Match.client).selectinload(User.professional_profile),
            joinedload(Match.professional).selectinload(User.professional_profile),
            joinedload(Match.proposal).joinedload(Proposal.project),
        ]

    async def add_match(self, match: Match) -> Match:
        """
        (C) 加入新的 match (由 Service 的 commit 一併寫入)
        """
        self.db.add(match)
        return match

    async def check_match_exists_by_proposal(self, proposal_id: str) -> bool:
        """
        (R) proposal_id 是 unique，一個提案最多一個 match
        """
        stmt = select(exists().where(Match.proposal_id == proposal_id))
        result = await self.db.execute(stmt)
        return result.scalar()

    async def get_match_by_id(self, match_id: str) -> Optional[Match]:
        """
        (R) 只取 match 本身 (狀態檢查用)
        """
        stmt = select(Match).where(Match.match_id == match_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_match_with_participants(self, match_id: str) -> Optional[Match]:
        """
        (R) 透過 ID 獲取單一 match，並 Eager Loading 雙方資料
        """
        stmt = (
            select(Match)
            .where(Match.match_id == match_id)
            .options(*self._get_common_match_options())
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list_matches_by_user(self, user_id: str, role: Optional[str] = None) -> List[Match]:
        """
        (R) 獲取某位使用者 (作為客戶 或 作為專業人員) 的所有 match，新到舊
        role: 'client' / 'professional' / None (兩者皆可)
        """
        if role == "client":
            condition = Match.client_id == user_id
        elif role == "professional":
            condition = Match.professional_id == user_id
        else:
            condition = or_(
                Match.client_id == user_id,
                Match.professional_id == user_id
            )

        stmt = (
            select(Match)
            .where(condition)
            .order_by(Match.created_at.desc())
            .options(*self._get_common_match_options())
        )
        result = await self.db.execute(stmt)
        return result.unique().scalars().all()

    async def record_phone_reveal(self, match_id: str, now: datetime) -> None:
        """
        (U) 揭露計數在資料庫端 +1，併發兌換不會互相覆蓋
        (注意) 不同步 session 中已載入的 Match，需要最新值時請重新查詢
        """
        stmt = (
            update(Match)
            .where(Match.match_id == match_id)
            .values(
                phone_reveal_count=Match.phone_reveal_count + 1,
                phone_revealed_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(stmt)

    async def save(self, match: Match) -> Match:
        """
        (U) 將變更送到資料庫 (flush)
        """
        await self.db.flush()
        return match
