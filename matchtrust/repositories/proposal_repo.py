# matchtrust/repositories/proposal_repo.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import joinedload
from typing import Optional

from matchtrust.models.proposal import Proposal

class ProposalRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_proposal_by_id_with_project(self, proposal_id: str) -> Optional[Proposal]:
        """
        透過 ID 獲取單一提案，並載入關聯的 Project (用於權限檢查)
        """
        stmt = select(Proposal).where(Proposal.proposal_id == proposal_id).options(
            # 使用 joinedload 載入 project，因為我們需要 project.client_id
            joinedload(Proposal.project) 
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()
