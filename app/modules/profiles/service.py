import csv
import io
from supabase import Client
from app.modules.profiles.schemas import ProfileUpdate, ProfileResponse, Role
from typing import List, Optional
from datetime import datetime, timezone
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

CSV_HEADERS = [
    "ID", "Full Name", "Email", "Phone", "Location", "Role", "Wallet Balance", "Is Active", "Updated At"
]


class ProfileService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_profile_by_id(self, user_id: str) -> ProfileResponse:
        """Get profile by ID"""
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .eq("id", user_id)\
                .limit(1)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Profile not found")

            return ProfileResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_profile(self, user_id: str, profile_data: ProfileUpdate) -> ProfileResponse:
        """Update contact details of a profile"""
        try:
            update_data = {"updated_at": datetime.now(timezone.utc).isoformat()}
            if profile_data.full_name is not None:
                update_data["full_name"] = profile_data.full_name
            if profile_data.phone is not None:
                update_data["phone"] = profile_data.phone
            if profile_data.location is not None:
                update_data["location"] = profile_data.location

            result = self.supabase.table("profiles")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Profile not found")

            return ProfileResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def set_active(self, user_id: str, is_active: bool) -> ProfileResponse:
        """Activate or deactivate an account"""
        try:
            result = self.supabase.table("profiles")\
                .update({"is_active": is_active, "updated_at": datetime.now(timezone.utc).isoformat()})\
                .eq("id", user_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Profile not found")

            logger.info(f"Profile {user_id} {'activated' if is_active else 'deactivated'}")
            return ProfileResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_profiles(
        self,
        role: Optional[Role] = None,
        search: Optional[str] = None,
        limit: int = 100,
        offset: int = 0
    ) -> List[ProfileResponse]:
        """List profiles; search matches name or email, case-insensitive"""
        try:
            query = self.supabase.table("profiles").select("*")
            if role:
                query = query.eq("role", Role(role).value)
            result = query.order("full_name").execute()
            profiles = [ProfileResponse(**p) for p in (result.data or [])]
            if search:
                needle = search.lower()
                profiles = [
                    p for p in profiles
                    if needle in (p.full_name or "").lower() or needle in (p.email or "").lower()
                ]
            return profiles[offset:offset + limit]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def export_members_csv(self, search: Optional[str] = None) -> str:
        """Render member profiles as CSV text"""
        members = self.list_profiles(role=Role.MEMBER, search=search, limit=100000)
        if not members:
            raise HTTPException(status_code=404, detail="No members to export")

        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL)
        writer.writerow(CSV_HEADERS)
        for m in members:
            writer.writerow([
                m.id,
                m.full_name or "",
                m.email or "",
                m.phone or "",
                m.location or "",
                m.role.value,
                m.wallet_balance,
                "True" if m.is_active else "False",
                m.updated_at.isoformat() if m.updated_at else "",
            ])
        return buffer.getvalue()
