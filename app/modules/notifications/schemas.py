from enum import Enum
from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from datetime import datetime


class NotificationTarget(str, Enum):
    ALL_MEMBERS = "all_members"
    SPECIFIC_MEMBER = "specific_member"
    EQUB_MEMBERS = "equb_members"


class NotificationResponse(BaseModel):
    id: str
    user_id: str
    message: str
    read: bool = False
    created_at: datetime

    class Config:
        from_attributes = True


class NotificationSend(BaseModel):
    target_type: NotificationTarget
    target_id: Optional[str] = None  # profile id or equb id, depending on target_type
    message: str = Field(min_length=1)

    @model_validator(mode="after")
    def require_target_id(self):
        if not self.message.strip():
            raise ValueError("Notification message cannot be empty")
        if self.target_type == NotificationTarget.SPECIFIC_MEMBER and not self.target_id:
            raise ValueError("Please select a specific member")
        if self.target_type == NotificationTarget.EQUB_MEMBERS and not self.target_id:
            raise ValueError("Please select an Equb group")
        return self


class NotificationSendResponse(BaseModel):
    sent: int
    recipients: List[str]


class MarkReadRequest(BaseModel):
    ids: Optional[List[str]] = None  # None marks every unread notification


class UnreadCountResponse(BaseModel):
    unread: int
