from supabase import Client
from app.modules.equbs import rules
from app.modules.equbs.schemas import EqubStatus
from app.modules.memberships.schemas import MembershipResponse, MembershipStatus
from app.modules.notifications.service import NotificationService
from typing import List, Optional, Dict
from datetime import datetime, timezone
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class MembershipService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.notifications = NotificationService(supabase)

    def _get_equb(self, equb_id: str) -> dict:
        result = self.supabase.table("equbs")\
            .select("*")\
            .eq("id", equb_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Equb not found")
        return result.data[0]

    def _get_membership(self, equb_id: str, user_id: str) -> Optional[dict]:
        result = self.supabase.table("memberships")\
            .select("*")\
            .eq("equb_id", equb_id)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def _decorate(self, rows: List[dict]) -> List[MembershipResponse]:
        """Attach member and equb names for display"""
        user_ids = list({r["user_id"] for r in rows})
        equb_ids = list({r["equb_id"] for r in rows})
        names: Dict[str, str] = {}
        equb_names: Dict[str, str] = {}
        if user_ids:
            profiles = self.supabase.table("profiles").select("id, full_name").in_("id", user_ids).execute()
            names = {p["id"]: p.get("full_name") for p in (profiles.data or [])}
        if equb_ids:
            equbs = self.supabase.table("equbs").select("id, name").in_("id", equb_ids).execute()
            equb_names = {e["id"]: e.get("name") for e in (equbs.data or [])}
        return [
            MembershipResponse(
                **row,
                full_name=names.get(row["user_id"]),
                equb_name=equb_names.get(row["equb_id"])
            )
            for row in rows
        ]

    def join_equb(self, equb_id: str, profile: dict) -> MembershipResponse:
        """Request to join an equb. Upserts so a rejected member can apply again."""
        try:
            equb = self._get_equb(equb_id)
            if equb["status"] != EqubStatus.OPEN.value:
                raise HTTPException(status_code=409, detail="This Equb is not accepting new members")

            existing = self._get_membership(equb_id, profile["id"])
            if existing and existing["status"] == MembershipStatus.APPROVED.value:
                raise HTTPException(status_code=409, detail="You are already a member of this Equb")
            if existing and existing["status"] == MembershipStatus.PENDING.value:
                raise HTTPException(status_code=409, detail="Your request to join is already pending")

            result = self.supabase.table("memberships").upsert({
                "user_id": profile["id"],
                "equb_id": equb_id,
                "status": MembershipStatus.PENDING.value,
                "join_date": datetime.now(timezone.utc).isoformat()
            }, on_conflict="user_id,equb_id").execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to submit join request")

            self.notifications.notify_admins(
                f'{profile.get("full_name")} has requested to join "{equb["name"]}".'
            )
            return MembershipResponse(**result.data[0], full_name=profile.get("full_name"), equb_name=equb["name"])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=f"Failed to submit join request: {e}")

    def list_memberships(
        self,
        status: Optional[MembershipStatus] = None,
        equb_id: Optional[str] = None,
        user_id: Optional[str] = None
    ) -> List[MembershipResponse]:
        try:
            query = self.supabase.table("memberships").select("*")
            if status:
                query = query.eq("status", MembershipStatus(status).value)
            if equb_id:
                query = query.eq("equb_id", equb_id)
            if user_id:
                query = query.eq("user_id", user_id)
            result = query.order("join_date", desc=True).execute()
            return self._decorate(result.data or [])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def decide(self, equb_id: str, user_id: str, new_status: str, admin: dict) -> MembershipResponse:
        """Approve or reject a join request, notify both sides, then check whether the equb is now full"""
        try:
            equb = self._get_equb(equb_id)
            existing = self._get_membership(equb_id, user_id)
            if not existing:
                raise HTTPException(status_code=404, detail="Membership request not found")
            if existing["status"] != MembershipStatus.PENDING.value:
                raise HTTPException(status_code=409, detail=f"This request has already been {existing['status']}")

            if new_status == MembershipStatus.APPROVED.value:
                if equb["status"] != EqubStatus.OPEN.value:
                    raise HTTPException(status_code=409, detail="This Equb is no longer accepting new members")
                approved = self.supabase.table("memberships")\
                    .select("user_id")\
                    .eq("equb_id", equb_id)\
                    .eq("status", MembershipStatus.APPROVED.value)\
                    .execute().data or []
                if len(approved) >= int(equb["max_members"]):
                    raise HTTPException(status_code=409, detail="This Equb is already full")

            # only a still-pending row is flipped
            result = self.supabase.table("memberships")\
                .update({"status": new_status})\
                .eq("user_id", user_id)\
                .eq("equb_id", equb_id)\
                .eq("status", MembershipStatus.PENDING.value)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=409, detail="This request was decided by someone else")

            member = self.supabase.table("profiles")\
                .select("id, full_name")\
                .eq("id", user_id)\
                .limit(1)\
                .execute()
            member_name = member.data[0].get("full_name") if member.data else None

            self.notifications.notify_each([
                {"user_id": user_id, "message": f'Your request to join "{equb["name"]}" has been {new_status}.'},
                {"user_id": admin["id"], "message": f'You have {new_status} {member_name}\'s request for "{equb["name"]}".'}
            ])
            logger.info(f"Membership {user_id}/{equb_id} {new_status} by {admin['id']}")

            if new_status == MembershipStatus.APPROVED.value:
                self.activate_full_equbs(equb_id)

            return MembershipResponse(**result.data[0], full_name=member_name, equb_name=equb["name"])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=f"Failed to {new_status} request: {e}")

    def activate_full_equbs(self, equb_id: Optional[str] = None) -> List[str]:
        """Flip Open equbs whose approved count reached max_members to Active.

        The update is conditional on status still being Open, so concurrent
        callers cannot both perform the transition; only the caller whose
        update returned the row notifies the members.
        """
        query = self.supabase.table("equbs").select("*").eq("status", EqubStatus.OPEN.value)
        if equb_id:
            query = query.eq("id", equb_id)
        open_equbs = query.execute().data or []
        if not open_equbs:
            return []

        memberships = self.supabase.table("memberships")\
            .select("user_id, equb_id, status")\
            .in_("equb_id", [e["id"] for e in open_equbs])\
            .eq("status", MembershipStatus.APPROVED.value)\
            .execute().data or []

        activated = []
        for equb in open_equbs:
            if not rules.should_activate(equb, memberships):
                continue
            try:
                result = self.supabase.table("equbs")\
                    .update({"status": EqubStatus.ACTIVE.value})\
                    .eq("id", equb["id"])\
                    .eq("status", EqubStatus.OPEN.value)\
                    .execute()
            except Exception as e:
                logger.error(f"Failed to activate equb {equb['name']}: {e}")
                continue
            if not result.data:
                continue
            activated.append(equb["id"])
            logger.info(f"Equb {equb['id']} is full and now Active")
            self.notifications.notify_many(
                rules.approved_member_ids(memberships, equb["id"]),
                f'The Equb group "{equb["name"]}" is now full and has become Active!'
            )
        return activated
