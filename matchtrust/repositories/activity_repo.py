# matchtrust/repositories/activity_repo.py

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from matchtrust.models.activity import UserActivity, ReviewModerationAction


class ActivityRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def add_activity(self, activity: UserActivity) -> UserActivity:
        self.db.add(activity)
        await self.db.flush()
        return activity

    async def add_moderation_action(self, action: ReviewModerationAction) -> ReviewModerationAction:
        self.db.add(action)
        await self.db.flush()
        return action

    async def count_moderation_decisions(self, decision: str) -> int:
        stmt = (
            select(func.count())
            .select_from(ReviewModerationAction)
            .where(ReviewModerationAction.decision == decision)
        )
        return await self.db.scalar(stmt)
