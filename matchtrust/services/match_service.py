# matchtrust/services/match_service.py

from sqlalchemy.ext.asyncio import AsyncSession
from typing import Callable, Dict, FrozenSet, List, Optional
from datetime import datetime
import logging

from matchtrust.core.database import commit_or_raise
from matchtrust.core.events import DomainEvent, EventCollector, NotificationKind
from matchtrust.core.exceptions import (
    ConflictError, ForbiddenError, InvalidTransitionError, NotFoundError, ValidationError
)
from matchtrust.models.match import Match, MatchStatusEnum
from matchtrust.repositories.match_repo import MatchRepository
from matchtrust.repositories.proposal_repo import ProposalRepository
from matchtrust.utils.time import utcnow

logger = logging.getLogger(__name__)

# --- 狀態機 ---
# active 可轉到任何其他狀態；completed 只能轉 disputed；其餘為終態
ALLOWED_TRANSITIONS: Dict[MatchStatusEnum, FrozenSet[MatchStatusEnum]] = {
    MatchStatusEnum.active: frozenset({
        MatchStatusEnum.completed,
        MatchStatusEnum.disputed,
        MatchStatusEnum.cancelled,
        MatchStatusEnum.unsuccessful,
    }),
    MatchStatusEnum.completed: frozenset({MatchStatusEnum.disputed}),
    MatchStatusEnum.disputed: frozenset(),
    MatchStatusEnum.cancelled: frozenset(),
    MatchStatusEnum.unsuccessful: frozenset(),
}


def validate_status_transition(current: MatchStatusEnum, new: MatchStatusEnum) -> None:
    """不在轉移表中的狀態變更一律拒絕 (不論呼叫者是誰)"""
    current, new = MatchStatusEnum(current), MatchStatusEnum(new)
    if new not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError(f"不合法的狀態轉移: {current.value} -> {new.value}")


class MatchService(EventCollector):
    def __init__(self, db: AsyncSession, clock: Callable[[], datetime] = utcnow):
        super().__init__()
        self.db = db
        self.clock = clock
        self.match_repo = MatchRepository(db)
        self.proposal_repo = ProposalRepository(db)

    async def create_match(
        self,
        proposal_id: str,
        client_id: str,
        professional_id: str,
        project_id: str,
        job_id: Optional[str] = None,
    ) -> Match:
        """
        提案被接受後建立 match (由外部流程觸發)
        """
        if client_id == professional_id:
            raise ValidationError("客戶與專業人員不可為同一人")

        proposal = await self.proposal_repo.get_proposal_by_id_with_project(proposal_id)
        if not proposal:
            raise NotFoundError("提案不存在")
        if proposal.status != "accepted":
            raise ValidationError(f"提案狀態必須為 'accepted' (目前為 '{proposal.status}')")
        if proposal.project_id != project_id:
            raise ValidationError("提案不屬於此案件")
        if proposal.project is None or proposal.project.client_id != client_id:
            raise ForbiddenError("只有案件擁有者可以建立 match")
        if proposal.professional_id != professional_id:
            raise ValidationError("專業人員與提案者不符")
        if await self.match_repo.check_match_exists_by_proposal(proposal_id):
            raise ConflictError("此提案已建立 match")

        now = self.clock()
        new_match = Match(
            proposal_id=proposal_id,
            client_id=client_id,
            professional_id=professional_id,
            project_id=project_id,
            job_id=job_id,
            status=MatchStatusEnum.active,
            phone_reveal_count=0,
            created_at=now,
            updated_at=now,
        )
        await self.match_repo.add_match(new_match)
        await commit_or_raise(self.db)
        logger.info(f"建立 match {new_match.match_id} (proposal {proposal_id})")

        self._emit(DomainEvent(
            user_id=professional_id,
            kind=NotificationKind.match_created,
            title="新的媒合！",
            message="客戶已接受你的提案，現在可以查看聯絡方式。",
            action_url=f"/matches/{new_match.match_id}",
        ))

        # 最後才讀取 Eager Loaded 的物件並回傳
        return await self.match_repo.get_match_with_participants(new_match.match_id)

    async def get_match(self, match_id: str, requesting_user_id: Optional[str] = None) -> Match:
        match = await self.match_repo.get_match_with_participants(match_id)
        if not match:
            raise NotFoundError("Match 不存在")
        if requesting_user_id is not None and not match.is_participant(requesting_user_id):
            raise ForbiddenError("你不是此 match 的參與者")
        return match

    async def list_matches_for_user(self, user_id: str, role: Optional[str] = None) -> List[Match]:
        return await self.match_repo.list_matches_by_user(user_id, role)

    async def update_status(self, match_id: str, acting_user_id: str, new_status: MatchStatusEnum) -> Match:
        """
        參與者變更 match 狀態 (依狀態機驗證)，除寫入外沒有其他副作用
        """
        match = await self.get_match(match_id, acting_user_id)

        validate_status_transition(match.status, new_status)

        old_status = match.status
        match.status = MatchStatusEnum(new_status)
        match.updated_at = self.clock()
        await self.match_repo.save(match)
        await commit_or_raise(self.db)
        logger.info(f"Match {match_id} 狀態 {MatchStatusEnum(old_status).value} -> {match.status.value} (by {acting_user_id})")
        return match
