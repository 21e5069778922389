from enum import Enum
from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class Role(str, Enum):
    ADMIN = "admin"
    MEMBER = "member"


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None


class ProfileResponse(BaseModel):
    id: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    role: Role = Role.MEMBER
    wallet_balance: float = 0
    is_active: bool = True
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileStatusUpdate(BaseModel):
    is_active: bool
