from enum import Enum
from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class ContributionStatus(str, Enum):
    PAID = "paid"
    PENDING = "pending"
    LATE = "late"


class ContributionCreate(BaseModel):
    equb_id: str


class ContributionResponse(BaseModel):
    id: str
    equb_id: str
    user_id: str
    date: datetime
    amount: float
    status: ContributionStatus
    full_name: Optional[str] = None
    equb_name: Optional[str] = None

    class Config:
        from_attributes = True
