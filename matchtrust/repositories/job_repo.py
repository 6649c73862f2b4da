# matchtrust/repositories/job_repo.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import Optional

from matchtrust.models.job import Job
from matchtrust.models.match import Match


class JobRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_job_by_id(self, job_id: str) -> Optional[Job]:
        stmt = select(Job).where(Job.job_id == job_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_job_by_project(self, project_id: str) -> Optional[Job]:
        """
        (R) 以 project_id 找工作 (理論上一個案件只有一個 job)
        """
        stmt = (
            select(Job)
            .where(Job.project_id == project_id)
            .order_by(Job.created_at.asc())
            .limit(1)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_job_for_match(self, match: Match) -> Optional[Job]:
        """
        (R) 取得 match 對應的 job：優先使用 match.job_id，沒有時退回 project_id
        """
        if match.job_id:
            return await self.get_job_by_id(match.job_id)
        return await self.get_job_by_project(match.project_id)
