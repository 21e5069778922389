from fastapi import APIRouter, Depends, HTTPException
from app.database.supabase_client import get_supabase
from app.modules.equbs.schemas import (
    EqubCreate, EqubUpdate, EqubResponse, EqubDetailResponse, EqubStatsResponse,
    EqubStatus, EqubType
)
from app.modules.equbs.service import EqubService
from app.core.dependencies import get_current_profile, require_admin
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(prefix="/equbs", tags=["equbs"])


def get_equb_service(supabase: Client = Depends(get_supabase)) -> EqubService:
    return EqubService(supabase)


@router.post("", response_model=EqubResponse, status_code=201)
async def create_equb(
    equb_data: EqubCreate,
    user_data: Dict = Depends(require_admin),
    service: EqubService = Depends(get_equb_service)
):
    """Create a new equb (admin only)"""
    return service.create_equb(equb_data, user_data["id"])


@router.get("", response_model=List[EqubResponse])
async def list_equbs(
    status: Optional[EqubStatus] = None,
    equb_type: Optional[EqubType] = None,
    search: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    user_data: Dict = Depends(get_current_profile),
    service: EqubService = Depends(get_equb_service)
):
    """List equbs with optional status, type and name filters"""
    return service.list_equbs(
        status=status,
        equb_type=equb_type.value if equb_type else None,
        search=search,
        limit=limit,
        offset=offset
    )


@router.get("/stats", response_model=EqubStatsResponse)
async def get_stats(
    user_data: Dict = Depends(require_admin),
    service: EqubService = Depends(get_equb_service)
):
    """Dashboard totals (admin only)"""
    return service.get_stats()


@router.get("/{equb_id}", response_model=EqubResponse)
async def get_equb(
    equb_id: str,
    user_data: Dict = Depends(get_current_profile),
    service: EqubService = Depends(get_equb_service)
):
    return service.get_equb_by_id(equb_id)


@router.get("/{equb_id}/detail", response_model=EqubDetailResponse)
async def get_equb_detail(
    equb_id: str,
    user_data: Dict = Depends(get_current_profile),
    service: EqubService = Depends(get_equb_service)
):
    """Get equb with its approved members and winner history"""
    return service.get_equb_detail(equb_id)


@router.put("/{equb_id}", response_model=EqubResponse)
async def update_equb(
    equb_id: str,
    equb_data: EqubUpdate,
    user_data: Dict = Depends(require_admin),
    service: EqubService = Depends(get_equb_service)
):
    """Update equb (admin only). Approved members are notified."""
    return service.update_equb(equb_id, equb_data)


@router.delete("/{equb_id}", status_code=204)
async def delete_equb(
    equb_id: str,
    user_data: Dict = Depends(require_admin),
    service: EqubService = Depends(get_equb_service)
):
    """Delete equb (admin only)"""
    if not service.delete_equb(equb_id):
        raise HTTPException(status_code=404, detail="Equb not found")
    return None
