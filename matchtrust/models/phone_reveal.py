# matchtrust/models/phone_reveal.py

import uuid
from sqlalchemy import Column, String, TEXT, TIMESTAMP, ForeignKey, CHAR, func
from sqlalchemy.orm import relationship
from matchtrust.core.database import Base


class PhoneReveal(Base):
    """
    一次性電話揭露授權
    - 明文 token 絕不儲存，只存 SHA-256 雜湊 (token_hash)
    - redeemed_at 為 NULL 且未過期時才可兌換，且只能兌換一次
    - 永久保留作為稽核紀錄
    """
    __tablename__ = "phone_reveals"

    reveal_id = Column(CHAR(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    match_id = Column(CHAR(36), ForeignKey("matches.match_id", ondelete="RESTRICT"), nullable=False, index=True)
    # 申請揭露的使用者
    user_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="RESTRICT"), nullable=False, index=True)

    # AES-256-GCM 加密後的電話 ("nonce.tag.ciphertext")
    encrypted_phone = Column(TEXT, nullable=False)
    token_hash = Column(CHAR(64), nullable=False, unique=True, index=True)

    expires_at = Column(TIMESTAMP, nullable=False)
    redeemed_at = Column(TIMESTAMP, nullable=True)

    # 稽核用
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(500), nullable=True)

    created_at = Column(TIMESTAMP, server_default=func.now())

    match = relationship("Match")
