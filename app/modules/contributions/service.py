from supabase import Client
from app.config import settings
from app.modules.contributions.schemas import ContributionResponse, ContributionStatus
from app.modules.notifications.service import NotificationService
from typing import List, Optional, Dict
from datetime import datetime, timezone
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class ContributionService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.notifications = NotificationService(supabase)

    def _get_contribution(self, contribution_id: str) -> dict:
        result = self.supabase.table("contributions")\
            .select("*")\
            .eq("id", contribution_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Contribution not found")
        return result.data[0]

    def _equb_names(self, equb_ids: List[str]) -> Dict[str, str]:
        if not equb_ids:
            return {}
        result = self.supabase.table("equbs").select("id, name").in_("id", equb_ids).execute()
        return {e["id"]: e.get("name") for e in (result.data or [])}

    def _member_names(self, user_ids: List[str]) -> Dict[str, str]:
        if not user_ids:
            return {}
        result = self.supabase.table("profiles").select("id, full_name").in_("id", user_ids).execute()
        return {p["id"]: p.get("full_name") for p in (result.data or [])}

    def submit_contribution(self, equb_id: str, profile: dict) -> ContributionResponse:
        """Record a pending payment of the equb's contribution amount for admin verification"""
        try:
            equb_result = self.supabase.table("equbs")\
                .select("*")\
                .eq("id", equb_id)\
                .limit(1)\
                .execute()
            if not equb_result.data:
                raise HTTPException(status_code=404, detail="Equb not found")
            equb = equb_result.data[0]

            membership = self.supabase.table("memberships")\
                .select("status")\
                .eq("equb_id", equb_id)\
                .eq("user_id", profile["id"])\
                .eq("status", "approved")\
                .limit(1)\
                .execute()
            if not membership.data:
                raise HTTPException(status_code=403, detail="Only approved members can contribute to this Equb")

            result = self.supabase.table("contributions").insert({
                "equb_id": equb_id,
                "user_id": profile["id"],
                "amount": equb["contribution_amount"],
                "status": ContributionStatus.PENDING.value,
                "date": datetime.now(timezone.utc).isoformat()
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to record contribution")

            admin_message = (
                f'New contribution of {equb["contribution_amount"]} {settings.currency} '
                f'from {profile.get("full_name")} for "{equb["name"]}".'
            )
            rows = [{"user_id": admin_id, "message": admin_message} for admin_id in self.notifications.get_admin_ids()]
            rows.append({
                "user_id": profile["id"],
                "message": f'Your contribution for "{equb["name"]}" has been submitted for admin verification.'
            })
            self.notifications.notify_each(rows)

            return ContributionResponse(**result.data[0], full_name=profile.get("full_name"), equb_name=equb["name"])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=f"Failed to make contribution: {e}")

    def list_contributions(
        self,
        user_id: Optional[str] = None,
        equb_id: Optional[str] = None,
        status: Optional[ContributionStatus] = None,
        search: Optional[str] = None,
        limit: int = 100,
        offset: int = 0
    ) -> List[ContributionResponse]:
        """List contributions newest first; search matches member or equb name"""
        try:
            query = self.supabase.table("contributions").select("*")
            if user_id:
                query = query.eq("user_id", user_id)
            if equb_id:
                query = query.eq("equb_id", equb_id)
            if status:
                query = query.eq("status", ContributionStatus(status).value)
            result = query.order("date", desc=True).execute()
            rows = result.data or []

            names = self._member_names(list({r["user_id"] for r in rows}))
            equb_names = self._equb_names(list({r["equb_id"] for r in rows}))
            contributions = [
                ContributionResponse(**r, full_name=names.get(r["user_id"]), equb_name=equb_names.get(r["equb_id"]))
                for r in rows
            ]
            if search:
                needle = search.lower()
                contributions = [
                    c for c in contributions
                    if needle in (c.full_name or "").lower() or needle in (c.equb_name or "").lower()
                ]
            return contributions[offset:offset + limit]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def set_status(self, contribution_id: str, new_status: ContributionStatus) -> ContributionResponse:
        """Admin verification. Confirming a payment notifies the member."""
        try:
            contribution = self._get_contribution(contribution_id)
            result = self.supabase.table("contributions")\
                .update({"status": new_status.value})\
                .eq("id", contribution_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Contribution not found")

            equb_name = self._equb_names([contribution["equb_id"]]).get(contribution["equb_id"], "Unknown")
            if new_status == ContributionStatus.PAID:
                self.notifications.notify(
                    contribution["user_id"],
                    f'Your payment of {contribution["amount"]} {settings.currency} for "{equb_name}" has been confirmed.'
                )
            logger.info(f"Contribution {contribution_id} marked {new_status.value}")
            return ContributionResponse(**result.data[0], equb_name=equb_name)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
