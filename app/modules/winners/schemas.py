from pydantic import BaseModel
from typing import Optional
from datetime import date
from app.modules.equbs.schemas import EqubStatus


class EligibleMember(BaseModel):
    id: str
    full_name: Optional[str] = None


class WinnerResponse(BaseModel):
    id: str
    equb_id: str
    user_id: str
    win_date: date
    round: int
    full_name: Optional[str] = None

    class Config:
        from_attributes = True


class DrawResponse(BaseModel):
    winner: WinnerResponse
    equb_status: EqubStatus
    next_due_date: date
