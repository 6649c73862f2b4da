# matchtrust/services/completion_service.py
# 完成確認的雙向握手：一方「請求完成」，另一方「確認完成」
# 要求者與確認者必須是不同的人，避免單方面宣稱完成

from sqlalchemy.ext.asyncio import AsyncSession
from typing import Callable, Optional
from datetime import datetime
import logging

from matchtrust.core.database import commit_or_raise
from matchtrust.core.events import DomainEvent, EventCollector, NotificationKind
from matchtrust.core.exceptions import (
    AlreadyRequestedError, ConflictError, NotFoundError, NotRequestedError, SelfConfirmationError
)
from matchtrust.models.job import Job
from matchtrust.models.match import Match, MatchStatusEnum
from matchtrust.repositories.job_repo import JobRepository
from matchtrust.repositories.match_repo import MatchRepository
from matchtrust.schemas.match_schema import CompletionStatusOut
from matchtrust.services.match_service import MatchService, validate_status_transition
from matchtrust.utils.time import utcnow

logger = logging.getLogger(__name__)

JOB_STATUS_COMPLETED = "completed"


class CompletionService(EventCollector):
    def __init__(self, db: AsyncSession, clock: Callable[[], datetime] = utcnow):
        super().__init__()
        self.db = db
        self.clock = clock
        self.match_service = MatchService(db, clock=clock)
        self.match_repo = MatchRepository(db)
        self.job_repo = JobRepository(db)

    async def _get_linked_job(self, match: Match) -> Job:
        job = await self.job_repo.get_job_for_match(match)
        if not job:
            raise NotFoundError("找不到此 match 關聯的工作")
        return job

    async def request_completion(
        self, match_id: str, acting_user_id: str, comment: Optional[str] = None
    ) -> Job:
        """
        (步驟 1) 參與者請求完成；不改變 match 狀態
        """
        match = await self.match_service.get_match(match_id, acting_user_id)
        job = await self._get_linked_job(match)

        if job.completion_confirmed_at is not None:
            raise ConflictError("此工作已確認完成")
        if job.completion_requested_by == acting_user_id:
            raise AlreadyRequestedError("你已經請求過完成確認")

        job.completion_requested_by = acting_user_id
        job.completion_requested_at = self.clock()
        job.updated_at = job.completion_requested_at
        await commit_or_raise(self.db)
        logger.info(f"Match {match_id}: {acting_user_id} 請求完成確認")

        self._emit(DomainEvent(
            user_id=match.counterparty_of(acting_user_id),
            kind=NotificationKind.completion_requested,
            title="對方已將服務標記為完成",
            message=comment or "請確認工作已完成，確認後雙方即可互相評價。",
            action_url=f"/matches/{match_id}",
        ))
        return job

    async def confirm_completion(self, match_id: str, acting_user_id: str) -> Match:
        """
        (步驟 2) 由「另一方」確認完成
        job 與 match 狀態在同一個交易中更新，這是之後允許評價的唯一關卡
        """
        match = await self.match_service.get_match(match_id, acting_user_id)
        job = await self._get_linked_job(match)

        if not job.completion_requested_by:
            raise NotRequestedError("尚未有人請求完成確認")
        if job.completion_requested_by == acting_user_id:
            raise SelfConfirmationError("你不能確認自己提出的完成請求")
        if job.completion_confirmed_at is not None:
            raise ConflictError("此工作已確認完成")
        if match.status != MatchStatusEnum.completed:
            validate_status_transition(match.status, MatchStatusEnum.completed)

        now = self.clock()
        job.completion_confirmed_by = acting_user_id
        job.completion_confirmed_at = now
        job.status = JOB_STATUS_COMPLETED
        job.updated_at = now

        match.status = MatchStatusEnum.completed
        match.updated_at = now

        await commit_or_raise(self.db)
        logger.info(f"Match {match_id}: {acting_user_id} 確認完成，狀態 -> completed")

        for user_id in (match.client_id, match.professional_id):
            self._emit(DomainEvent(
                user_id=user_id,
                kind=NotificationKind.match_completed,
                title="服務已完成！",
                message="雙方都已確認工作完成，現在可以留下評價。",
                action_url=f"/matches/{match_id}",
            ))
        return match

    async def get_completion_status(self, match_id: str) -> CompletionStatusOut:
        """
        (純讀取) is_completed / can_review 只看 completion_confirmed_at
        """
        match = await self.match_repo.get_match_by_id(match_id)
        if not match:
            raise NotFoundError("Match 不存在")

        job = await self.job_repo.get_job_for_match(match)
        confirmed = job is not None and job.completion_confirmed_at is not None

        return CompletionStatusOut(
            match_id=match.match_id,
            match_status=match.status,
            job_id=job.job_id if job else None,
            completion_requested_by=job.completion_requested_by if job else None,
            completion_requested_at=job.completion_requested_at if job else None,
            completion_confirmed_by=job.completion_confirmed_by if job else None,
            completion_confirmed_at=job.completion_confirmed_at if job else None,
            is_completed=confirmed,
            can_review=confirmed,
        )
