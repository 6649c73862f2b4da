# matchtrust/repositories/phone_reveal_repo.py

from datetime import datetime
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.sql.expression import exists
from typing import List, Optional

from matchtrust.models.phone_reveal import PhoneReveal


class PhoneRevealRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def add_reveal(self, reveal: PhoneReveal) -> PhoneReveal:
        self.db.add(reveal)
        await self.db.flush()
        return reveal

    async def find_pending(self, match_id: str, token_hash: str, now: datetime) -> Optional[PhoneReveal]:
        """
        (R) 找出「可兌換」的紀錄：同一 match、雜湊相符、未過期、尚未兌換
        """
        stmt = select(PhoneReveal).where(
            PhoneReveal.match_id == match_id,
            PhoneReveal.token_hash == token_hash,
            PhoneReveal.expires_at > now,
            PhoneReveal.redeemed_at.is_(None),
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def mark_redeemed(self, reveal_id: str, now: datetime) -> bool:
        """
        (U) 條件式更新：只有 redeemed_at 仍為 NULL 才會成功
        回傳 False 表示已被其他請求搶先兌換
        """
        stmt = (
            update(PhoneReveal)
            .where(
                PhoneReveal.reveal_id == reveal_id,
                PhoneReveal.redeemed_at.is_(None),
            )
            .values(redeemed_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount == 1

    async def has_redeemed(self, match_id: str) -> bool:
        stmt = select(exists().where(
            PhoneReveal.match_id == match_id,
            PhoneReveal.redeemed_at.is_not(None),
        ))
        result = await self.db.execute(stmt)
        return result.scalar()

    async def list_by_match(self, match_id: str) -> List[PhoneReveal]:
        """
        (R) 稽核用：某 match 的所有揭露紀錄，新到舊
        """
        stmt = (
            select(PhoneReveal)
            .where(PhoneReveal.match_id == match_id)
            .order_by(PhoneReveal.created_at.desc())
            # 兌換是條件式 UPDATE，不會同步 session 中的物件，這裡一律重新讀取
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()
