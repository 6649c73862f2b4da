import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from matchtrust.core.config import settings
from matchtrust.core.crypto import CipherConfig, TokenCipher
from matchtrust.core.exceptions import DomainError
from matchtrust.routers import match_router, review_router, moderation_router, notification_router

# --- 匯入所有 Model 檔案 ---
# 都在應用程式啟動時被 SQLAlchemy 註冊。
from matchtrust.models import user
from matchtrust.models import professional_profile
from matchtrust.models import project
from matchtrust.models import proposal
from matchtrust.models import job
from matchtrust.models import match
from matchtrust.models import phone_reveal
from matchtrust.models import review
from matchtrust.models import activity
from matchtrust.models import notification


# 設定基礎日誌
logging.basicConfig(level=settings.LOG_LEVEL, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__) # 建立一個 logger 實例


def create_app(cipher_config: CipherConfig | None = None) -> FastAPI:
    """
    建立 FastAPI 應用程式
    (重要) 沒有 ENCRYPTION_KEY 時 CipherConfig.from_settings 會拋出 MissingEncryptionKeyError，
    應用程式直接啟動失敗
    """
    app = FastAPI(title="MatchTrust API")

    config = cipher_config or CipherConfig.from_settings(settings)
    app.state.token_cipher = TokenCipher(config)

    # --- 設定 CORS (跨來源資源共用) ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"], # (生產環境中應限制)
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- 錯誤轉換：領域錯誤 -> HTTP 回應 (不外洩內部細節) ---
    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} 失敗: {exc.kind}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "error": exc.kind},
        )

    # --- 根路徑 ---
    @app.get("/")
    def read_root():
        return {"status": "success", "message": "Backend is running!"}

    # --- 載入 API 路由 ---
    app.include_router(match_router.router)
    app.include_router(review_router.router)
    app.include_router(moderation_router.router)
    app.include_router(notification_router.router)
    return app


app = create_app()
