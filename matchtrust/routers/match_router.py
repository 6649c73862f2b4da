# matchtrust/routers/match_router.py

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Literal, Optional

from matchtrust.core.crypto import TokenCipher
from matchtrust.core.database import get_db
from matchtrust.core.security import get_current_user, require_admin
from matchtrust.models.user import User
from matchtrust.schemas.match_schema import (
    CompletionRequest, CompletionStatusOut, MatchCreate, MatchOut, MatchStatusUpdate
)
from matchtrust.schemas.phone_schema import (
    PhoneMaskedOut, PhoneRevealedOut, PhoneRevealHistoryItem, PhoneRevealRequest, PhoneRevealTokenOut
)
from matchtrust.services.completion_service import CompletionService
from matchtrust.services.match_service import MatchService
from matchtrust.services.notification_service import NotificationDispatcher
from matchtrust.services.phone_reveal_service import PhoneRevealService

router = APIRouter(
    prefix="/matches",
    tags=["Matches"]
)

# 輔助函式：在路由中快速實例化 Service
def get_match_service(db: AsyncSession = Depends(get_db)) -> MatchService:
    return MatchService(db)

def get_completion_service(db: AsyncSession = Depends(get_db)) -> CompletionService:
    return CompletionService(db)

def get_token_cipher(request: Request) -> TokenCipher:
    # 啟動時在 main.py 建立，整個 process 共用 (唯讀)
    return request.app.state.token_cipher

def get_phone_reveal_service(
    db: AsyncSession = Depends(get_db),
    cipher: TokenCipher = Depends(get_token_cipher),
) -> PhoneRevealService:
    return PhoneRevealService(db, cipher)


@router.post(
    "/",
    response_model=MatchOut,
    status_code=status.HTTP_201_CREATED,
    summary="提案被接受後建立 Match"
)
async def api_create_match(
    data: MatchCreate,
    service: MatchService = Depends(get_match_service),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    (客戶) 接受提案後建立 match，呼叫者即為 client。
    """
    match = await service.create_match(
        proposal_id=data.proposal_id,
        client_id=current_user.user_id,
        professional_id=data.professional_id,
        project_id=data.project_id,
        job_id=data.job_id,
    )
    # 先轉成回應：通知失敗時 dispatcher 會 rollback，已載入的物件會失效
    out = MatchOut.model_validate(match)
    await NotificationDispatcher(db).dispatch(service.drain_events())
    return out

@router.get("/", response_model=List[MatchOut], summary="獲取我的 Match 列表")
async def api_get_my_matches(
    role: Optional[Literal["client", "professional"]] = Query(None),
    service: MatchService = Depends(get_match_service),
    current_user: User = Depends(get_current_user)
):
    return await service.list_matches_for_user(current_user.user_id, role)

@router.get("/{match_id}", response_model=MatchOut, summary="檢視 Match 詳情")
async def api_get_match(
    match_id: str,
    service: MatchService = Depends(get_match_service),
    current_user: User = Depends(get_current_user)
):
    return await service.get_match(match_id, current_user.user_id)

@router.put("/{match_id}/status", response_model=MatchOut, summary="Match 狀態流轉")
async def api_update_match_status(
    match_id: str,
    data: MatchStatusUpdate,
    service: MatchService = Depends(get_match_service),
    current_user: User = Depends(get_current_user)
):
    """
    - active -> completed / disputed / cancelled / unsuccessful
    - completed -> disputed
    - 其餘為終態
    """
    return await service.update_status(match_id, current_user.user_id, data.status)

# --- 完成確認 (雙向握手) ---
@router.post(
    "/{match_id}/request-completion",
    response_model=CompletionStatusOut,
    summary="請求完成確認"
)
async def api_request_completion(
    match_id: str,
    data: CompletionRequest,
    service: CompletionService = Depends(get_completion_service),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await service.request_completion(match_id, current_user.user_id, data.comment)
    await NotificationDispatcher(db).dispatch(service.drain_events())
    return await service.get_completion_status(match_id)

@router.put(
    "/{match_id}/confirm-completion",
    response_model=CompletionStatusOut,
    summary="確認完成 (另一方)"
)
async def api_confirm_completion(
    match_id: str,
    service: CompletionService = Depends(get_completion_service),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await service.confirm_completion(match_id, current_user.user_id)
    await NotificationDispatcher(db).dispatch(service.drain_events())
    return await service.get_completion_status(match_id)

@router.get(
    "/{match_id}/completion-status",
    response_model=CompletionStatusOut,
    summary="完成狀態與評價資格"
)
async def api_get_completion_status(
    match_id: str,
    service: CompletionService = Depends(get_completion_service),
    current_user: User = Depends(get_current_user)
):
    return await service.get_completion_status(match_id)

# --- 電話揭露 ---
@router.post(
    "/{match_id}/request-phone-reveal",
    response_model=PhoneRevealTokenOut,
    status_code=status.HTTP_201_CREATED,
    summary="產生一次性電話揭露 token"
)
async def api_request_phone_reveal(
    match_id: str,
    request: Request,
    service: PhoneRevealService = Depends(get_phone_reveal_service),
    current_user: User = Depends(get_current_user)
):
    return await service.generate_token(
        match_id,
        current_user.user_id,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )

@router.get("/{match_id}/phone-masked", response_model=PhoneMaskedOut, summary="遮罩後的電話號碼")
async def api_get_masked_phone(
    match_id: str,
    service: PhoneRevealService = Depends(get_phone_reveal_service),
    current_user: User = Depends(get_current_user)
):
    return await service.get_masked_phone(match_id, current_user.user_id)

@router.post("/{match_id}/reveal-phone", response_model=PhoneRevealedOut, summary="以 token 揭露電話")
async def api_reveal_phone(
    match_id: str,
    data: PhoneRevealRequest,
    service: PhoneRevealService = Depends(get_phone_reveal_service),
    current_user: User = Depends(get_current_user)
):
    """
    (一次性) 同一個 token 第二次使用一定會失敗。
    """
    return await service.redeem_token(match_id, data.token, current_user.user_id)

@router.get(
    "/{match_id}/reveal-history",
    response_model=List[PhoneRevealHistoryItem],
    summary="電話揭露稽核紀錄 (管理員)"
)
async def api_get_reveal_history(
    match_id: str,
    service: PhoneRevealService = Depends(get_phone_reveal_service),
    admin: User = Depends(require_admin)
):
    return await service.get_reveal_history(match_id)
