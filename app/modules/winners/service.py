import random
from supabase import Client
from app.modules.equbs import rules
from app.modules.equbs.schemas import EqubStatus
from app.modules.notifications.service import NotificationService
from app.modules.winners.schemas import EligibleMember, WinnerResponse, DrawResponse
from typing import List, Optional
from datetime import date
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class WinnerService:
    def __init__(self, supabase: Client, rng: Optional[random.Random] = None):
        self.supabase = supabase
        self.rng = rng
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

    def _winner_rows(self, equb_id: str) -> List[dict]:
        result = self.supabase.table("winners")\
            .select("*")\
            .eq("equb_id", equb_id)\
            .order("round")\
            .execute()
        return result.data or []

    def _approved_rows(self, equb_id: str) -> List[dict]:
        result = self.supabase.table("memberships")\
            .select("user_id, equb_id, status")\
            .eq("equb_id", equb_id)\
            .eq("status", "approved")\
            .execute()
        return result.data or []

    def _profiles(self, user_ids: List[str]) -> List[dict]:
        if not user_ids:
            return []
        result = self.supabase.table("profiles")\
            .select("id, full_name")\
            .in_("id", user_ids)\
            .execute()
        return result.data or []

    def get_eligible_members(self, equb_id: str) -> List[EligibleMember]:
        """Approved members who have not won this equb yet"""
        try:
            self._get_equb(equb_id)
            eligible_ids = rules.eligible_member_ids(
                self._approved_rows(equb_id), self._winner_rows(equb_id), equb_id
            )
            by_id = {p["id"]: p for p in self._profiles(eligible_ids)}
            return [EligibleMember(id=uid, full_name=by_id.get(uid, {}).get("full_name")) for uid in eligible_ids]
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_winners(self, equb_id: str) -> List[WinnerResponse]:
        """Winner history ordered by round"""
        try:
            rows = self._winner_rows(equb_id)
            names = {p["id"]: p.get("full_name") for p in self._profiles(list({r["user_id"] for r in rows}))}
            return [
                WinnerResponse(**r, full_name=names.get(r["user_id"]))
                for r in sorted(rows, key=lambda r: r["round"])
            ]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def draw_winner(self, equb_id: str) -> DrawResponse:
        """Pick a winner uniformly from the eligible set, record the round and advance the equb.

        The winner insert happens first; if it fails the equb is left untouched.
        A failed equb update after a successful insert is reported but not
        compensated.
        """
        equb = self._get_equb(equb_id)
        if equb["status"] == EqubStatus.COMPLETED.value:
            raise HTTPException(status_code=409, detail="This Equb has already completed all rounds")
        if equb["status"] != EqubStatus.ACTIVE.value:
            raise HTTPException(status_code=409, detail="Winners can only be drawn once the Equb is full and Active")

        try:
            approved = self._approved_rows(equb_id)
            past_winners = self._winner_rows(equb_id)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        eligible_ids = rules.eligible_member_ids(approved, past_winners, equb_id)
        if not eligible_ids:
            raise HTTPException(
                status_code=409,
                detail="All eligible members have already won, or there are no approved members for this Equb."
            )

        winner_id = rules.pick_winner(eligible_ids, self.rng)
        round_number = len(past_winners) + 1

        try:
            inserted = self.supabase.table("winners").insert({
                "equb_id": equb_id,
                "user_id": winner_id,
                "win_date": date.today().isoformat(),
                "round": round_number
            }).execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=f"Failed to record winner: {e}")
        if not inserted.data:
            raise HTTPException(status_code=500, detail="Failed to record winner")

        new_status = rules.status_after_round(round_number, int(equb["max_members"]))
        next_due_date = rules.advance_due_date(equb.get("next_due_date") or equb["start_date"], equb["cycle"])
        try:
            self.supabase.table("equbs")\
                .update({"next_due_date": next_due_date.isoformat(), "status": new_status.value})\
                .eq("id", equb_id)\
                .execute()
        except Exception as e:
            logger.error(f"Winner recorded for equb {equb_id} round {round_number} but equb update failed: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to update Equb status: {e}")

        profiles = self._profiles([winner_id])
        winner_name = profiles[0].get("full_name") if profiles else None
        logger.info(f"Equb {equb_id} round {round_number} won by {winner_id}; status {new_status.value}")

        self.notifications.notify_many(
            rules.approved_member_ids(approved, equb_id),
            f'{winner_name} has won round {round_number} of "{equb["name"]}"!'
        )

        return DrawResponse(
            winner=WinnerResponse(**inserted.data[0], full_name=winner_name),
            equb_status=new_status,
            next_due_date=next_due_date
        )
