from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.notifications.schemas import (
    NotificationResponse, NotificationSend, NotificationSendResponse,
    MarkReadRequest, UnreadCountResponse
)
from app.modules.notifications.service import NotificationService
from app.core.dependencies import get_current_profile, require_admin
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_notification_service(supabase: Client = Depends(get_supabase)) -> NotificationService:
    return NotificationService(supabase)


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    unread_only: bool = False,
    limit: int = 50,
    offset: int = 0,
    user_data: Dict = Depends(get_current_profile),
    service: NotificationService = Depends(get_notification_service)
):
    """List the caller's notifications, newest first"""
    return service.list_notifications(user_data["id"], unread_only=unread_only, limit=limit, offset=offset)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    user_data: Dict = Depends(get_current_profile),
    service: NotificationService = Depends(get_notification_service)
):
    return UnreadCountResponse(unread=service.unread_count(user_data["id"]))


@router.post("/mark-read")
async def mark_read(
    body: MarkReadRequest,
    user_data: Dict = Depends(get_current_profile),
    service: NotificationService = Depends(get_notification_service)
):
    """Mark the given notifications (or all unread ones when ids is omitted) as read"""
    updated = service.mark_read(user_data["id"], body.ids)
    return {"updated": updated}


@router.post("/send", response_model=NotificationSendResponse, status_code=201)
async def send_notification(
    send_data: NotificationSend,
    user_data: Dict = Depends(require_admin),
    service: NotificationService = Depends(get_notification_service)
):
    """Broadcast a custom notification to all members, one member or an equb's members (admin only)"""
    return service.send(send_data, user_data["id"])
