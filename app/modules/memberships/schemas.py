from enum import Enum
from pydantic import BaseModel
from typing import Optional, Literal
from datetime import datetime


class MembershipStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class MembershipResponse(BaseModel):
    user_id: str
    equb_id: str
    status: MembershipStatus
    join_date: Optional[datetime] = None
    full_name: Optional[str] = None
    equb_name: Optional[str] = None

    class Config:
        from_attributes = True


class MembershipDecision(BaseModel):
    status: Literal["approved", "rejected"]


class ActivationResponse(BaseModel):
    activated: list
