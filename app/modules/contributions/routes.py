from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.contributions.schemas import (
    ContributionCreate, ContributionResponse, ContributionStatus
)
from app.modules.contributions.service import ContributionService
from app.core.dependencies import get_current_profile, require_admin, is_admin
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(prefix="/contributions", tags=["contributions"])


def get_contribution_service(supabase: Client = Depends(get_supabase)) -> ContributionService:
    return ContributionService(supabase)


@router.post("", response_model=ContributionResponse, status_code=201)
async def submit_contribution(
    body: ContributionCreate,
    user_data: Dict = Depends(get_current_profile),
    service: ContributionService = Depends(get_contribution_service)
):
    """Submit a payment for an equb the caller is an approved member of"""
    return service.submit_contribution(body.equb_id, user_data["profile"])


@router.get("", response_model=List[ContributionResponse])
async def list_contributions(
    equb_id: Optional[str] = None,
    status: Optional[ContributionStatus] = None,
    search: Optional[str] = None,
    limit: int = 100,
    offset: int = 0,
    user_data: Dict = Depends(get_current_profile),
    service: ContributionService = Depends(get_contribution_service)
):
    """Admins see every contribution; members only their own"""
    user_id = None if is_admin(user_data) else user_data["id"]
    return service.list_contributions(
        user_id=user_id, equb_id=equb_id, status=status, search=search, limit=limit, offset=offset
    )


@router.post("/{contribution_id}/mark-paid", response_model=ContributionResponse)
async def mark_paid(
    contribution_id: str,
    user_data: Dict = Depends(require_admin),
    service: ContributionService = Depends(get_contribution_service)
):
    """Confirm a payment (admin only)"""
    return service.set_status(contribution_id, ContributionStatus.PAID)


@router.post("/{contribution_id}/mark-late", response_model=ContributionResponse)
async def mark_late(
    contribution_id: str,
    user_data: Dict = Depends(require_admin),
    service: ContributionService = Depends(get_contribution_service)
):
    """Flag a payment as late (admin only)"""
    return service.set_status(contribution_id, ContributionStatus.LATE)
