"""
Core dependencies for route protection and role checking
"""

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.database.supabase_client import get_supabase
from app.modules.auth.service import AuthService
from supabase import Client
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()

ROLE_ADMIN = "admin"
ROLE_MEMBER = "member"


def _get_request_cache(request: Request) -> Dict[str, Any]:
    """Return request-scoped cache for the caller's profile."""
    if not hasattr(request.state, "access_cache"):
        request.state.access_cache = {}
    return request.state.access_cache


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    token = credentials.credentials
    user_data = auth_service.get_current_user(token)
    return user_data


def get_user_profile(user_id: str, supabase: Client, cache: Optional[Dict[str, Any]] = None) -> Optional[dict]:
    """Return the profiles row for user_id. Uses request-scoped cache when provided."""
    if cache is not None and "profile" in cache:
        return cache["profile"]
    try:
        result = supabase.table("profiles")\
            .select("*")\
            .eq("id", user_id)\
            .limit(1)\
            .execute()
        profile = result.data[0] if result.data else None
    except Exception as e:
        logger.error(f"Error getting profile for {user_id}: {e}")
        profile = None
    if cache is not None:
        cache["profile"] = profile
    return profile


def is_admin(user_data: dict) -> bool:
    profile = user_data.get("profile") or {}
    return profile.get("role") == ROLE_ADMIN


def get_current_profile(
    request: Request,
    user_data: dict = Depends(get_current_user_id),
    supabase: Client = Depends(get_supabase)
) -> dict:
    """Authenticated user with their profile attached under "profile". Deactivated accounts are refused."""
    profile = get_user_profile(user_data["id"], supabase, _get_request_cache(request))
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Profile not found for this account"
        )
    if profile.get("is_active") is False:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This account has been deactivated"
        )
    return {**user_data, "profile": profile}


def require_admin(user_data: dict = Depends(get_current_profile)) -> dict:
    """Dependency to restrict a route to admins"""
    if not is_admin(user_data):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required"
        )
    return user_data


def check_self_or_admin(target_user_id: str, user_data: dict) -> dict:
    """Allow if the caller is the target user or an admin"""
    if user_data["id"] == target_user_id or is_admin(user_data):
        return user_data
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="You can only access your own records"
    )
