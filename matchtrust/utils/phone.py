# matchtrust/utils/phone.py
import re

_NON_DIGIT = re.compile(r"\D")

def mask_phone_number(phone: str) -> str:
    """
    遮罩電話號碼：保留前 5 碼與後 4 碼，中間以 * 取代
    - 先去除所有非數字字元
    - 少於 10 碼時原樣回傳 (不足以安全遮罩)
    - 格式: "+<前5碼> <*...*> <後4碼>"，* 的數量 = 總位數 - 9
    """
    digits = _NON_DIGIT.sub("", phone)

    if len(digits) < 10:
        return phone

    start = digits[:5]
    end = digits[-4:]
    middle = "*" * (len(digits) - 9)
    return f"+{start} {middle} {end}"
