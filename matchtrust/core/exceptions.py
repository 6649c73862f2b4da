# matchtrust/core/exceptions.py
# 領域錯誤分類：Service 層只拋出這些例外，由 main.py 的 handler 統一轉成 HTTP 回應
from fastapi import status


class DomainError(Exception):
    """所有業務錯誤的基底類別"""
    status_code: int = status.HTTP_400_BAD_REQUEST
    kind: str = "domain_error"

    def __init__(self, detail: str = "請求無法處理"):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    kind = "not_found"


class ForbiddenError(DomainError):
    status_code = status.HTTP_403_FORBIDDEN
    kind = "forbidden"


class ValidationError(DomainError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    kind = "validation_error"


class ConflictError(DomainError):
    status_code = status.HTTP_409_CONFLICT
    kind = "conflict"


class PreconditionFailedError(DomainError):
    # 業務條件尚未滿足 (例如尚未確認完成、編輯期限已過)
    status_code = status.HTTP_400_BAD_REQUEST
    kind = "precondition_failed"


class InvalidStateError(DomainError):
    status_code = status.HTTP_409_CONFLICT
    kind = "invalid_state"


class InvalidTransitionError(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    kind = "invalid_transition"


class InvalidOrExpiredTokenError(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    kind = "invalid_or_expired_token"


class DecryptionError(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    kind = "decryption_error"

    def __init__(self, detail: str = "無法解密資料"):
        super().__init__(detail)


class PersistenceError(DomainError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind = "persistence_error"


# --- 完成確認 (雙向握手) 專用 ---
class AlreadyRequestedError(ConflictError):
    kind = "already_requested"


class NotRequestedError(PreconditionFailedError):
    kind = "not_requested"


class SelfConfirmationError(ForbiddenError):
    kind = "self_confirmation"


# --- 啟動設定錯誤 (不屬於請求錯誤) ---
class MissingEncryptionKeyError(RuntimeError):
    """ENCRYPTION_KEY 未設定或長度不足，應用程式不可啟動"""
