# matchtrust/repositories/user_repo.py
# 使用者目錄 (唯讀)
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from matchtrust.models.user import User

class UserRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_id(self, user_id: str) -> User | None:
        """
        透過 user_id 查詢使用者
        """
        stmt = select(User).where(User.user_id == user_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()
