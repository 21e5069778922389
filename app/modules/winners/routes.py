from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.winners.schemas import EligibleMember, WinnerResponse, DrawResponse
from app.modules.winners.service import WinnerService
from app.core.dependencies import get_current_profile, require_admin
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/equbs/{equb_id}", tags=["winners"])


def get_winner_service(supabase: Client = Depends(get_supabase)) -> WinnerService:
    return WinnerService(supabase)


@router.get("/eligible", response_model=List[EligibleMember])
async def get_eligible_members(
    equb_id: str,
    user_data: Dict = Depends(require_admin),
    service: WinnerService = Depends(get_winner_service)
):
    """Approved members who can still win this equb (admin only)"""
    return service.get_eligible_members(equb_id)


@router.post("/draw", response_model=DrawResponse, status_code=201)
async def draw_winner(
    equb_id: str,
    user_data: Dict = Depends(require_admin),
    service: WinnerService = Depends(get_winner_service)
):
    """Draw, record and announce the next round's winner (admin only)"""
    return service.draw_winner(equb_id)


@router.get("/winners", response_model=List[WinnerResponse])
async def list_winners(
    equb_id: str,
    user_data: Dict = Depends(get_current_profile),
    service: WinnerService = Depends(get_winner_service)
):
    """Winner history of an equb ordered by round"""
    return service.list_winners(equb_id)
