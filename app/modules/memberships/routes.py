from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.memberships.schemas import (
    MembershipResponse, MembershipDecision, MembershipStatus, ActivationResponse
)
from app.modules.memberships.service import MembershipService
from app.core.dependencies import get_current_profile, require_admin, check_self_or_admin
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(tags=["memberships"])


def get_membership_service(supabase: Client = Depends(get_supabase)) -> MembershipService:
    return MembershipService(supabase)


@router.post("/equbs/{equb_id}/join", response_model=MembershipResponse, status_code=201)
async def join_equb(
    equb_id: str,
    user_data: Dict = Depends(get_current_profile),
    service: MembershipService = Depends(get_membership_service)
):
    """Request to join an Open equb; admins are notified"""
    return service.join_equb(equb_id, user_data["profile"])


@router.get("/equbs/{equb_id}/memberships", response_model=List[MembershipResponse])
async def list_equb_memberships(
    equb_id: str,
    status: Optional[MembershipStatus] = None,
    user_data: Dict = Depends(require_admin),
    service: MembershipService = Depends(get_membership_service)
):
    """List memberships of an equb (admin only)"""
    return service.list_memberships(status=status, equb_id=equb_id)


@router.put("/equbs/{equb_id}/memberships/{user_id}", response_model=MembershipResponse)
async def decide_membership(
    equb_id: str,
    user_id: str,
    decision: MembershipDecision,
    user_data: Dict = Depends(require_admin),
    service: MembershipService = Depends(get_membership_service)
):
    """Approve or reject a join request (admin only)"""
    return service.decide(equb_id, user_id, decision.status, user_data)


@router.get("/memberships/requests", response_model=List[MembershipResponse])
async def list_pending_requests(
    user_data: Dict = Depends(require_admin),
    service: MembershipService = Depends(get_membership_service)
):
    """All pending join requests (admin only)"""
    return service.list_memberships(status=MembershipStatus.PENDING)


@router.get("/users/{user_id}/memberships", response_model=List[MembershipResponse])
async def list_user_memberships(
    user_id: str,
    user_data: Dict = Depends(get_current_profile),
    service: MembershipService = Depends(get_membership_service)
):
    """Memberships of a user (self or admin)"""
    check_self_or_admin(user_id, user_data)
    return service.list_memberships(user_id=user_id)


@router.post("/memberships/activate", response_model=ActivationResponse)
async def activate_full_equbs(
    user_data: Dict = Depends(require_admin),
    service: MembershipService = Depends(get_membership_service)
):
    """Run the auto-activation check for every Open equb (admin only)"""
    return ActivationResponse(activated=service.activate_full_equbs())
