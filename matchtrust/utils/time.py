# matchtrust/utils/time.py
from datetime import datetime, timezone

def utcnow() -> datetime:
    """
    目前 UTC 時間 (naive)
    資料庫的 TIMESTAMP 欄位不帶時區，統一以 naive UTC 存取與比較
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)
