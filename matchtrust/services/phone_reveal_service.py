# matchtrust/services/phone_reveal_service.py
# 一次性、加密、有時效的電話號碼揭露

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Callable, List, Optional
from datetime import datetime, timedelta
import logging

from matchtrust.core.crypto import TokenCipher, generate_secret, hash_token
from matchtrust.core.database import commit_or_raise
from matchtrust.core.exceptions import (
    ForbiddenError, InvalidOrExpiredTokenError, InvalidStateError, NotFoundError
)
from matchtrust.models.activity import UserActivity
from matchtrust.models.match import Match, MatchStatusEnum
from matchtrust.models.phone_reveal import PhoneReveal
from matchtrust.repositories.activity_repo import ActivityRepository
from matchtrust.repositories.match_repo import MatchRepository
from matchtrust.repositories.phone_reveal_repo import PhoneRevealRepository
from matchtrust.repositories.user_repo import UserRepository
from matchtrust.schemas.phone_schema import (
    PhoneMaskedOut, PhoneRevealedOut, PhoneRevealHistoryItem, PhoneRevealTokenOut
)
from matchtrust.utils.phone import mask_phone_number
from matchtrust.utils.time import utcnow

logger = logging.getLogger(__name__)

PHONE_REVEAL_EXPIRY_HOURS = 24
REVEAL_ACTION = "phone_number_revealed"


class PhoneRevealService:
    def __init__(
        self,
        db: AsyncSession,
        cipher: TokenCipher,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.cipher = cipher
        self.clock = clock
        self.match_repo = MatchRepository(db)
        self.reveal_repo = PhoneRevealRepository(db)
        self.user_repo = UserRepository(db)
        self.activity_repo = ActivityRepository(db)

    async def _get_participant_match(self, match_id: str, user_id: str) -> Match:
        match = await self.match_repo.get_match_by_id(match_id)
        if not match:
            raise NotFoundError("Match 不存在")
        if not match.is_participant(user_id):
            raise ForbiddenError("你不是此 match 的參與者")
        return match

    async def _get_counterparty_phone(self, match: Match, user_id: str) -> str:
        counterparty = await self.user_repo.get_user_by_id(match.counterparty_of(user_id))
        phone = counterparty.contact_phone if counterparty else None
        if not phone:
            raise NotFoundError("對方沒有提供電話號碼")
        return phone

    async def generate_token(
        self,
        match_id: str,
        requesting_user_id: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> PhoneRevealTokenOut:
        """
        發出一次性揭露 Token
        (重要) 回傳的明文 token 只會出現這一次，資料庫只存雜湊
        """
        match = await self._get_participant_match(match_id, requesting_user_id)
        if match.status != MatchStatusEnum.active:
            raise InvalidStateError("只有進行中 (active) 的 match 可以揭露電話")

        phone = await self._get_counterparty_phone(match, requesting_user_id)

        token, token_hash = generate_secret()
        now = self.clock()
        expires_at = now + timedelta(hours=PHONE_REVEAL_EXPIRY_HOURS)

        reveal = PhoneReveal(
            match_id=match_id,
            user_id=requesting_user_id,
            encrypted_phone=self.cipher.encrypt(phone),
            token_hash=token_hash,
            expires_at=expires_at,
            ip_address=ip_address,
            user_agent=user_agent,
            created_at=now,
        )
        await self.reveal_repo.add_reveal(reveal)
        await commit_or_raise(self.db)
        logger.info(f"Match {match_id}: 已為 {requesting_user_id} 發出電話揭露 token (reveal {reveal.reveal_id})")

        return PhoneRevealTokenOut(token=token, expires_at=expires_at)

    async def redeem_token(self, match_id: str, token: str, requesting_user_id: str) -> PhoneRevealedOut:
        """
        以 token 兌換電話號碼 (只能成功一次)
        """
        await self._get_participant_match(match_id, requesting_user_id)

        now = self.clock()
        reveal = await self.reveal_repo.find_pending(match_id, hash_token(token), now)
        if not reveal:
            raise InvalidOrExpiredTokenError("揭露 token 無效或已過期")

        # 先解密，失敗時不消耗 token
        phone = self.cipher.decrypt(reveal.encrypted_phone)

        # 條件式更新，避免同一 token 被併發兌換兩次
        if not await self.reveal_repo.mark_redeemed(reveal.reveal_id, now):
            raise InvalidOrExpiredTokenError("揭露 token 無效或已過期")

        await self.match_repo.record_phone_reveal(match_id, now)
        await commit_or_raise(self.db)
        logger.info(f"Match {match_id}: reveal {reveal.reveal_id} 已被 {requesting_user_id} 兌換")

        await self._log_phone_reveal(match_id, requesting_user_id, reveal)

        return PhoneRevealedOut(phone_number=phone, masked_number=mask_phone_number(phone))

    async def _log_phone_reveal(self, match_id: str, user_id: str, reveal: PhoneReveal) -> None:
        """
        寫入稽核紀錄 (best-effort)
        電話已經揭露，稽核寫入失敗只記錄 log，不影響兌換結果
        """
        try:
            await self.activity_repo.add_activity(UserActivity(
                user_id=user_id,
                action=REVEAL_ACTION,
                resource_type="match",
                resource_id=match_id,
                details={
                    "reveal_id": reveal.reveal_id,
                    "ip_address": reveal.ip_address,
                    "user_agent": reveal.user_agent,
                },
            ))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"寫入電話揭露稽核紀錄失敗 (match {match_id}): {e}", exc_info=True)

    async def get_masked_phone(self, match_id: str, requesting_user_id: str) -> PhoneMaskedOut:
        """
        (不需 token) 隨時可查看遮罩後的對方電話
        """
        match = await self._get_participant_match(match_id, requesting_user_id)
        phone = await self._get_counterparty_phone(match, requesting_user_id)
        revealed = await self.reveal_repo.has_redeemed(match_id)
        return PhoneMaskedOut(masked_number=mask_phone_number(phone), revealed=revealed)

    async def get_reveal_history(self, match_id: str) -> List[PhoneRevealHistoryItem]:
        """
        (稽核 / 僅限管理員) 存取控制由 Router 的 require_admin 負責
        """
        match = await self.match_repo.get_match_by_id(match_id)
        if not match:
            raise NotFoundError("Match 不存在")
        reveals = await self.reveal_repo.list_by_match(match_id)
        return [PhoneRevealHistoryItem.model_validate(r) for r in reveals]
