# matchtrust/schemas/match_schema.py

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

from matchtrust.models.match import MatchStatusEnum
from matchtrust.schemas.user_schema import ParticipantSummary

# --- 1. 建立 (由接受提案的外部流程呼叫) ---
class MatchCreate(BaseModel):
    proposal_id: str
    professional_id: str
    project_id: str
    job_id: Optional[str] = None

# --- 2. 狀態變更 ---
class MatchStatusUpdate(BaseModel):
    status: MatchStatusEnum # 只接受合法的狀態值
    reason: Optional[str] = Field(None, max_length=500)

# --- 3. 完成確認 ---
class CompletionRequest(BaseModel):
    comment: Optional[str] = Field(None, max_length=1000)

class CompletionStatusOut(BaseModel):
    match_id: str
    match_status: MatchStatusEnum
    job_id: Optional[str] = None
    completion_requested_by: Optional[str] = None
    completion_requested_at: Optional[datetime] = None
    completion_confirmed_by: Optional[str] = None
    completion_confirmed_at: Optional[datetime] = None
    is_completed: bool
    can_review: bool

# --- 4. 輸出 ---
class MatchOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    match_id: str
    proposal_id: str
    client_id: str
    professional_id: str
    project_id: str
    job_id: Optional[str] = None
    status: MatchStatusEnum
    phone_reveal_count: int
    phone_revealed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # (巢狀) 雙方摘要
    client: Optional[ParticipantSummary] = None
    professional: Optional[ParticipantSummary] = None
