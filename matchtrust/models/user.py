# models/user.py
# 使用者目錄 (由帳號子系統擁有，本模組只讀取聯絡電話與角色)
from sqlalchemy import Column, String, Boolean, Enum, CHAR, TIMESTAMP, func
from sqlalchemy.orm import relationship
from matchtrust.core.database import Base
import enum

# 對應 SQL 中的 ENUM 型別
class UserRoleEnum(str, enum.Enum):
    client = "client"
    professional = "professional"
    admin = "admin"

class User(Base):
    __tablename__ = "users"

    # 基本欄位
    user_id = Column(CHAR(36), primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(100))
    avatar_url = Column(String(500))
    role = Column(Enum(UserRoleEnum, values_callable=lambda obj: [e.value for e in obj]), nullable=False)
    is_active = Column(Boolean, default=True)
    is_verified = Column(Boolean, default=False)

    # 聯絡電話 (whatsapp_number 優先於 phone)
    phone = Column(String(50))
    whatsapp_number = Column(String(50))

    created_at = Column(TIMESTAMP, server_default=func.now())

    # 專業人員才有的 Profile (評分彙總存在這裡)
    professional_profile = relationship(
        "ProfessionalProfile",
        back_populates="user", 
        uselist=False, 
        cascade="all, delete-orphan"
    )

    @property
    def contact_phone(self) -> str | None:
        """(重要) 兩者都存在時，以 WhatsApp 號碼為準"""
        return self.whatsapp_number or self.phone
