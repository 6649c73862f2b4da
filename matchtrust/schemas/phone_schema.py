# matchtrust/schemas/phone_schema.py

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime


class PhoneRevealTokenOut(BaseModel):
    # (重要) 明文 token 只在這個回應中出現一次
    token: str
    expires_at: datetime
    message: str = "請使用此 token 揭露電話號碼 (僅能使用一次)"


class PhoneRevealRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=128)


class PhoneRevealedOut(BaseModel):
    phone_number: str
    masked_number: str


class PhoneMaskedOut(BaseModel):
    masked_number: str
    revealed: bool


class PhoneRevealHistoryItem(BaseModel):
    """稽核用，不包含任何 token 或電話資訊"""
    model_config = ConfigDict(from_attributes=True)

    reveal_id: str
    user_id: str
    redeemed_at: Optional[datetime] = None
    expires_at: datetime
    created_at: Optional[datetime] = None
    ip_address: Optional[str] = None
