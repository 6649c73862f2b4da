# matchtrust/repositories/profile_repo.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from matchtrust.models.professional_profile import ProfessionalProfile


class ProfileRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_professional_profile_by_user_id(self, user_id: str) -> ProfessionalProfile | None:
        stmt = select(ProfessionalProfile).where(ProfessionalProfile.user_id == user_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def save(self, profile: ProfessionalProfile) -> ProfessionalProfile:
        await self.db.flush()
        return profile
