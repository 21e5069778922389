from supabase import Client
from app.config import settings
from app.modules.equbs import rules
from app.modules.equbs.schemas import (
    EqubCreate, EqubUpdate, EqubResponse, EqubDetailResponse,
    EqubMember, EqubWinnerEntry, EqubStatsResponse, EqubStatus
)
from app.modules.memberships.service import MembershipService
from app.modules.notifications.service import NotificationService
from typing import List, Optional, Dict
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class EqubService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.notifications = NotificationService(supabase)

    def get_equb_row(self, equb_id: str) -> dict:
        """Fetch the raw equbs row or raise 404"""
        result = self.supabase.table("equbs")\
            .select("*")\
            .eq("id", equb_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Equb not found")
        return result.data[0]

    def _approved_rows(self, equb_id: str) -> List[dict]:
        result = self.supabase.table("memberships")\
            .select("*")\
            .eq("equb_id", equb_id)\
            .eq("status", "approved")\
            .execute()
        return result.data or []

    def _profile_names(self, user_ids: List[str]) -> Dict[str, str]:
        if not user_ids:
            return {}
        result = self.supabase.table("profiles")\
            .select("id, full_name")\
            .in_("id", user_ids)\
            .execute()
        return {p["id"]: p.get("full_name") for p in (result.data or [])}

    def create_equb(self, equb_data: EqubCreate, user_id: str) -> EqubResponse:
        """Create a new equb"""
        try:
            next_due_date = equb_data.next_due_date or rules.initial_due_date(equb_data.start_date, equb_data.cycle)
            result = self.supabase.table("equbs").insert({
                "name": equb_data.name,
                "equb_type": equb_data.equb_type.value,
                "contribution_amount": equb_data.contribution_amount,
                "cycle": equb_data.cycle.value,
                "max_members": equb_data.max_members,
                "status": equb_data.status.value,
                "start_date": equb_data.start_date.isoformat(),
                "next_due_date": next_due_date.isoformat(),
                "winnable_amount": rules.compute_winnable_amount(equb_data.contribution_amount, equb_data.max_members),
                "created_by": user_id
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create equb")

            logger.info(f"Equb {result.data[0]['id']} created by {user_id}")
            return EqubResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_equb_by_id(self, equb_id: str) -> EqubResponse:
        """Get equb by ID"""
        try:
            return EqubResponse(**self.get_equb_row(equb_id))
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_equb(self, equb_id: str, equb_data: EqubUpdate) -> EqubResponse:
        """Update equb and let its approved members know"""
        try:
            current = self.get_equb_row(equb_id)
            update_data = equb_data.model_dump(exclude_unset=True, exclude_none=True, mode="json")

            contribution_amount = update_data.get("contribution_amount", current["contribution_amount"])
            max_members = update_data.get("max_members", current["max_members"])
            approved_ids = [m["user_id"] for m in self._approved_rows(equb_id)]
            if max_members < len(approved_ids):
                raise HTTPException(
                    status_code=409,
                    detail=f"max_members cannot be below the {len(approved_ids)} approved members"
                )
            update_data["winnable_amount"] = rules.compute_winnable_amount(contribution_amount, max_members)

            if "start_date" in update_data and "next_due_date" not in update_data:
                cycle = update_data.get("cycle", current["cycle"])
                update_data["next_due_date"] = rules.initial_due_date(update_data["start_date"], cycle).isoformat()

            result = self.supabase.table("equbs")\
                .update(update_data)\
                .eq("id", equb_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Equb not found")

            self.notifications.notify_many(
                approved_ids,
                f'The details for "{current["name"]}" have been updated.'
            )

            # a lowered max_members may have filled the equb
            if MembershipService(self.supabase).activate_full_equbs(equb_id):
                return self.get_equb_by_id(equb_id)
            return EqubResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_equbs(
        self,
        status: Optional[EqubStatus] = None,
        equb_type: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[EqubResponse]:
        """List equbs, newest first, with optional status/type/name filters"""
        try:
            query = self.supabase.table("equbs").select("*")
            if status:
                query = query.eq("status", EqubStatus(status).value)
            if equb_type:
                query = query.eq("equb_type", equb_type)
            if search:
                query = query.ilike("name", f"%{search}%")
            result = query.order("created_at", desc=True)\
                .limit(limit)\
                .offset(offset)\
                .execute()
            return [EqubResponse(**equb) for equb in result.data]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_equb(self, equb_id: str) -> bool:
        """Delete equb"""
        try:
            result = self.supabase.table("equbs")\
                .delete()\
                .eq("id", equb_id)\
                .execute()
            if result.data:
                logger.info(f"Equb {equb_id} deleted")
            return len(result.data) > 0
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_equb_detail(self, equb_id: str) -> EqubDetailResponse:
        """Get equb with approved members and winner history"""
        try:
            equb = self.get_equb_row(equb_id)
            members = self._approved_rows(equb_id)
            winners_result = self.supabase.table("winners")\
                .select("*")\
                .eq("equb_id", equb_id)\
                .order("round")\
                .execute()
            winners = winners_result.data or []

            names = self._profile_names(list({m["user_id"] for m in members} | {w["user_id"] for w in winners}))
            return EqubDetailResponse(
                **equb,
                member_count=len(members),
                members=[
                    EqubMember(user_id=m["user_id"], full_name=names.get(m["user_id"]), join_date=m.get("join_date"))
                    for m in members
                ],
                winners=[
                    EqubWinnerEntry(
                        user_id=w["user_id"],
                        full_name=names.get(w["user_id"]),
                        round=w["round"],
                        win_date=w["win_date"]
                    )
                    for w in sorted(winners, key=lambda w: w["round"])
                ]
            )
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_stats(self) -> EqubStatsResponse:
        """Admin dashboard totals"""
        try:
            equbs = self.supabase.table("equbs").select("id, status, equb_type").execute().data or []
            members = self.supabase.table("profiles").select("id").eq("role", "member").execute().data or []
            paid = self.supabase.table("contributions")\
                .select("equb_id, amount")\
                .eq("status", "paid")\
                .execute().data or []

            status_breakdown: Dict[str, int] = {}
            for equb in equbs:
                status_breakdown[equb["status"]] = status_breakdown.get(equb["status"], 0) + 1

            type_by_equb = {e["id"]: e["equb_type"] for e in equbs}
            contributions_by_type: Dict[str, float] = {}
            for c in paid:
                equb_type = type_by_equb.get(c["equb_id"])
                if equb_type:
                    contributions_by_type[equb_type] = contributions_by_type.get(equb_type, 0.0) + float(c["amount"])

            return EqubStatsResponse(
                total_equbs=len(equbs),
                total_members=len(members),
                active_cycles=status_breakdown.get(EqubStatus.ACTIVE.value, 0),
                total_contributions=sum(float(c["amount"]) for c in paid),
                currency=settings.currency,
                status_breakdown=status_breakdown,
                contributions_by_type=contributions_by_type
            )
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
