# matchtrust/core/crypto.py
# 負責一次性 Token 的產生/雜湊，以及電話號碼的 AES-256-GCM 加解密
import hashlib
import logging
import os
import secrets
from dataclasses import dataclass
from typing import Tuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from matchtrust.core.exceptions import DecryptionError, MissingEncryptionKeyError

logger = logging.getLogger(__name__)

KEY_LENGTH = 32          # AES-256
NONCE_LENGTH = 12        # GCM 標準 IV 長度
TAG_LENGTH = 16          # GCM 驗證標籤
TOKEN_BYTES = 32         # 一次性 Token 的亂數長度 (至少 32 bytes)
ENVELOPE_SEPARATOR = "."


@dataclass(frozen=True)
class CipherConfig:
    """
    加密設定 (Value Object)
    於啟動時建立一次後注入 TokenCipher，測試可直接傳入固定金鑰
    """
    key: bytes

    def __post_init__(self):
        if len(self.key) != KEY_LENGTH:
            raise MissingEncryptionKeyError(f"加密金鑰長度必須為 {KEY_LENGTH} bytes")

    # 不要讓金鑰出現在 log 或 traceback 中
    def __repr__(self) -> str:
        return "CipherConfig(key=***)"

    @classmethod
    def from_secret(cls, secret: str) -> "CipherConfig":
        """
        將設定字串轉為金鑰：
        - 64 個 hex 字元 -> 直接解碼為 32 bytes
        - 其他字串 -> 取 UTF-8 的前 32 bytes (長度不足視為未設定)
        """
        if not secret:
            raise MissingEncryptionKeyError("ENCRYPTION_KEY 未設定")
        if len(secret) == KEY_LENGTH * 2:
            try:
                return cls(key=bytes.fromhex(secret))
            except ValueError:
                pass # 不是 hex，改用原始字串
        raw = secret.encode("utf-8")
        if len(raw) < KEY_LENGTH:
            raise MissingEncryptionKeyError(f"ENCRYPTION_KEY 至少需要 {KEY_LENGTH} bytes")
        return cls(key=raw[:KEY_LENGTH])

    @classmethod
    def from_settings(cls, settings) -> "CipherConfig":
        return cls.from_secret(settings.ENCRYPTION_KEY or "")


def hash_token(token: str) -> str:
    """Token 的單向雜湊 (SHA-256 hex)，資料庫只存這個值"""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_secret() -> Tuple[str, str]:
    """
    產生一次性 Token
    回傳 (明文, 雜湊)；明文只交給呼叫者一次，絕不儲存
    """
    plaintext = secrets.token_hex(TOKEN_BYTES)
    return plaintext, hash_token(plaintext)


class TokenCipher:
    """
    AEAD 加解密 (AES-256-GCM)
    密文格式: "<nonce_hex>.<tag_hex>.<ciphertext_hex>"
    """
    def __init__(self, config: CipherConfig):
        self._aead = AESGCM(config.key)

    def encrypt(self, plaintext: str) -> str:
        nonce = os.urandom(NONCE_LENGTH)
        # AESGCM 回傳 ciphertext || tag
        sealed = self._aead.encrypt(nonce, plaintext.encode("utf-8"), None)
        ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
        return ENVELOPE_SEPARATOR.join([nonce.hex(), tag.hex(), ciphertext.hex()])

    def decrypt(self, envelope: str) -> str:
        """
        解密；格式錯誤、標籤驗證失敗或金鑰不符時一律拋出 DecryptionError
        (不回傳任何內部細節)
        """
        try:
            nonce_hex, tag_hex, ciphertext_hex = envelope.split(ENVELOPE_SEPARATOR)
            nonce = bytes.fromhex(nonce_hex)
            tag = bytes.fromhex(tag_hex)
            ciphertext = bytes.fromhex(ciphertext_hex)
            if len(nonce) != NONCE_LENGTH or len(tag) != TAG_LENGTH:
                raise ValueError("envelope 長度不符")
            plaintext = self._aead.decrypt(nonce, ciphertext + tag, None)
            return plaintext.decode("utf-8")
        except (InvalidTag, ValueError, AttributeError) as e:
            logger.warning(f"解密失敗: {type(e).__name__}")
            raise DecryptionError() from None
