# matchtrust/schemas/user_schema.py
from pydantic import BaseModel, ConfigDict
from typing import Optional
from matchtrust.models.user import UserRoleEnum

# (可選) Token 內的資料
class TokenData(BaseModel):
    user_id: str
    role: str


class RatingSummary(BaseModel):
    """專業人員 Profile 上的評分彙總"""
    model_config = ConfigDict(from_attributes=True)

    rating: float
    review_count: int


class UserSummary(BaseModel):
    """
    一個精簡的 Schema，用於在 Match / Review 中顯示參與者資訊
    (不包含電話號碼，電話只能透過揭露流程取得)
    """
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    is_verified: bool = False


class ParticipantSummary(UserSummary):
    email: str
    role: UserRoleEnum
    professional_profile: Optional[RatingSummary] = None
