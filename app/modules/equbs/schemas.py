from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import date, datetime


class EqubStatus(str, Enum):
    OPEN = "Open"
    ACTIVE = "Active"
    COMPLETED = "Completed"


class EqubType(str, Enum):
    EMPLOYEE = "Employee"
    DRIVERS = "Drivers"
    MERCHANTS = "Merchants"
    COOKING_OVEN = "Cooking Oven"
    TV = "TV"
    FRIDGE = "Fridge"
    WASHING_MACHINE = "Washing Machine"


class Cycle(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class EqubCreate(BaseModel):
    name: str = Field(min_length=1)
    equb_type: EqubType = EqubType.EMPLOYEE
    contribution_amount: float = Field(default=1000, gt=0)
    cycle: Cycle = Cycle.MONTHLY
    max_members: int = Field(default=10, ge=1)
    status: EqubStatus = EqubStatus.OPEN
    start_date: date = Field(default_factory=date.today)
    next_due_date: Optional[date] = None  # Derived from start_date + cycle when omitted


class EqubUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    equb_type: Optional[EqubType] = None
    contribution_amount: Optional[float] = Field(default=None, gt=0)
    cycle: Optional[Cycle] = None
    max_members: Optional[int] = Field(default=None, ge=1)
    status: Optional[EqubStatus] = None
    start_date: Optional[date] = None
    next_due_date: Optional[date] = None


class EqubResponse(BaseModel):
    id: str
    name: str
    equb_type: EqubType
    contribution_amount: float
    cycle: Cycle
    max_members: int
    status: EqubStatus
    start_date: date
    next_due_date: Optional[date] = None
    winnable_amount: float
    created_by: str
    created_at: datetime

    class Config:
        from_attributes = True


class EqubMember(BaseModel):
    user_id: str
    full_name: Optional[str] = None
    join_date: Optional[datetime] = None


class EqubWinnerEntry(BaseModel):
    user_id: str
    full_name: Optional[str] = None
    round: int
    win_date: date


class EqubDetailResponse(EqubResponse):
    member_count: int
    members: List[EqubMember]
    winners: List[EqubWinnerEntry]


class EqubStatsResponse(BaseModel):
    total_equbs: int
    total_members: int
    active_cycles: int
    total_contributions: float
    currency: str
    status_breakdown: Dict[str, int]
    contributions_by_type: Dict[str, float]
