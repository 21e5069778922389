from supabase import Client
from app.modules.notifications.schemas import (
    NotificationResponse, NotificationSend, NotificationSendResponse, NotificationTarget
)
from typing import List, Optional, Iterable
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

SENT_PREVIEW_LENGTH = 50


class NotificationService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def notify(self, user_id: str, message: str) -> bool:
        """Insert a single notification. Failures are logged, never raised."""
        return self.notify_many([user_id], message)

    def notify_many(self, user_ids: Iterable[str], message: str) -> bool:
        """Insert the same message for each recipient. Failures are logged, never raised."""
        rows = [{"user_id": uid, "message": message} for uid in dict.fromkeys(user_ids)]
        return self._insert(rows)

    def notify_each(self, rows: List[dict]) -> bool:
        """Insert prepared {user_id, message} rows in one call. Failures are logged, never raised."""
        return self._insert(rows)

    def _insert(self, rows: List[dict]) -> bool:
        if not rows:
            return True
        try:
            self.supabase.table("notifications").insert(rows).execute()
            return True
        except Exception as e:
            logger.error(f"Failed to insert {len(rows)} notification(s): {e}")
            return False

    def get_admin_ids(self) -> List[str]:
        try:
            result = self.supabase.table("profiles")\
                .select("id")\
                .eq("role", "admin")\
                .execute()
            return [p["id"] for p in (result.data or [])]
        except Exception as e:
            logger.error(f"Could not find admins to notify: {e}")
            return []

    def notify_admins(self, message: str) -> bool:
        admin_ids = self.get_admin_ids()
        if not admin_ids:
            logger.warning("No admin user found to notify: %s", message)
            return False
        return self.notify_many(admin_ids, message)

    def list_notifications(
        self,
        user_id: str,
        unread_only: bool = False,
        limit: int = 50,
        offset: int = 0
    ) -> List[NotificationResponse]:
        """List a user's notifications, newest first"""
        try:
            query = self.supabase.table("notifications").select("*").eq("user_id", user_id)
            if unread_only:
                query = query.eq("read", False)
            result = query.order("created_at", desc=True)\
                .limit(limit)\
                .offset(offset)\
                .execute()
            return [NotificationResponse(**n) for n in result.data]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def unread_count(self, user_id: str) -> int:
        try:
            result = self.supabase.table("notifications")\
                .select("id")\
                .eq("user_id", user_id)\
                .eq("read", False)\
                .execute()
            return len(result.data or [])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def mark_read(self, user_id: str, ids: Optional[List[str]] = None) -> int:
        """Mark the given ids (or every unread notification) as read. Only touches the caller's rows."""
        try:
            query = self.supabase.table("notifications")\
                .update({"read": True})\
                .eq("user_id", user_id)\
                .eq("read", False)
            if ids is not None:
                if not ids:
                    return 0
                query = query.in_("id", ids)
            result = query.execute()
            return len(result.data or [])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _resolve_recipients(self, send_data: NotificationSend) -> List[str]:
        if send_data.target_type == NotificationTarget.ALL_MEMBERS:
            result = self.supabase.table("profiles")\
                .select("id")\
                .eq("role", "member")\
                .execute()
            return [p["id"] for p in (result.data or [])]

        if send_data.target_type == NotificationTarget.SPECIFIC_MEMBER:
            result = self.supabase.table("profiles")\
                .select("id")\
                .eq("id", send_data.target_id)\
                .limit(1)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Member not found")
            return [send_data.target_id]

        result = self.supabase.table("memberships")\
            .select("user_id")\
            .eq("equb_id", send_data.target_id)\
            .eq("status", "approved")\
            .execute()
        member_ids = [m["user_id"] for m in (result.data or [])]
        if not member_ids:
            raise HTTPException(status_code=400, detail="The selected Equb has no approved members")
        return member_ids

    def send(self, send_data: NotificationSend, sender_id: str) -> NotificationSendResponse:
        """Admin broadcast. The sender also receives a short copy of what was sent."""
        try:
            recipients = self._resolve_recipients(send_data)
            rows = [{"user_id": uid, "message": send_data.message} for uid in recipients]
            rows.append({
                "user_id": sender_id,
                "message": f'You sent: "{send_data.message[:SENT_PREVIEW_LENGTH]}..."'
            })
            self.supabase.table("notifications").insert(rows).execute()
            logger.info(f"Admin {sender_id} sent notification to {len(recipients)} recipient(s)")
            return NotificationSendResponse(sent=len(recipients), recipients=recipients)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=f"Failed to send notification: {e}")
