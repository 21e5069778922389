from fastapi import APIRouter, Depends
from fastapi.responses import Response
from app.database.supabase_client import get_supabase
from app.modules.profiles.schemas import ProfileUpdate, ProfileResponse, ProfileStatusUpdate, Role
from app.modules.profiles.service import ProfileService
from app.core.dependencies import get_current_profile, require_admin, check_self_or_admin
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(prefix="/profiles", tags=["profiles"])


def get_profile_service(supabase: Client = Depends(get_supabase)) -> ProfileService:
    return ProfileService(supabase)


@router.get("", response_model=List[ProfileResponse])
async def list_profiles(
    role: Optional[Role] = None,
    search: Optional[str] = None,
    limit: int = 100,
    offset: int = 0,
    user_data: Dict = Depends(require_admin),
    service: ProfileService = Depends(get_profile_service)
):
    """List profiles (admin only)"""
    return service.list_profiles(role=role, search=search, limit=limit, offset=offset)


@router.get("/export")
async def export_members(
    search: Optional[str] = None,
    user_data: Dict = Depends(require_admin),
    service: ProfileService = Depends(get_profile_service)
):
    """Download member profiles as CSV (admin only)"""
    content = service.export_members_csv(search=search)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="members.csv"'}
    )


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(user_data: Dict = Depends(get_current_profile)):
    return ProfileResponse(**user_data["profile"])


@router.put("/me", response_model=ProfileResponse)
async def update_my_profile(
    profile_data: ProfileUpdate,
    user_data: Dict = Depends(get_current_profile),
    service: ProfileService = Depends(get_profile_service)
):
    """Update the caller's contact details"""
    return service.update_profile(user_data["id"], profile_data)


@router.get("/{user_id}", response_model=ProfileResponse)
async def get_profile(
    user_id: str,
    user_data: Dict = Depends(get_current_profile),
    service: ProfileService = Depends(get_profile_service)
):
    """Get profile by ID (self or admin)"""
    check_self_or_admin(user_id, user_data)
    return service.get_profile_by_id(user_id)


@router.put("/{user_id}/status", response_model=ProfileResponse)
async def set_profile_status(
    user_id: str,
    body: ProfileStatusUpdate,
    user_data: Dict = Depends(require_admin),
    service: ProfileService = Depends(get_profile_service)
):
    """Activate or deactivate an account (admin only)"""
    return service.set_active(user_id, body.is_active)
