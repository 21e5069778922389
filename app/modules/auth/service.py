import hashlib
import time
from supabase import Client
from app.modules.auth.schemas import LoginRequest, RegisterRequest, TokenResponse, RegisterResponse
from app.modules.notifications.service import NotificationService
from fastapi import HTTPException
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)

# token hash -> (user dict, expiry); saves a Supabase auth round-trip per request
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500


def _token_key(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def _cached_user(token: str) -> Optional[Dict[str, Any]]:
    key = _token_key(token)
    entry = _AUTH_USER_CACHE.get(key)
    if entry is None:
        return None
    user_data, expiry = entry
    if time.monotonic() >= expiry:
        del _AUTH_USER_CACHE[key]
        return None
    return user_data


def _remember_user(token: str, user_data: Dict[str, Any]) -> None:
    if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
        _AUTH_USER_CACHE[_token_key(token)] = (user_data, time.monotonic() + _AUTH_CACHE_TTL_SEC)


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _profile(self, user_id: str) -> Optional[dict]:
        result = self.supabase.table("profiles")\
            .select("id, full_name, role, is_active")\
            .eq("id", user_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Sign up a new member; the profiles row is created from the metadata by a database trigger"""
        try:
            auth_response = self.supabase.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {
                    "data": {
                        "full_name": register_data.full_name,
                        "phone": register_data.phone,
                        "location": register_data.location
                    }
                }
            })
        except Exception as e:
            error_message = str(e)
            if "already registered" in error_message.lower() or "already exists" in error_message.lower():
                raise HTTPException(status_code=400, detail="User already exists")
            raise HTTPException(status_code=500, detail=f"Registration failed: {error_message}")

        if not auth_response.user:
            raise HTTPException(status_code=400, detail="Failed to register user")

        NotificationService(self.supabase).notify_admins(
            f"{register_data.full_name} has just registered as a new member."
        )
        logger.info(f"Registered new member {auth_response.user.id}")

        return RegisterResponse(
            user_id=auth_response.user.id,
            email=auth_response.user.email or register_data.email,
            message="Registration successful. Please check your email to confirm your account."
        )

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Password sign-in. Deactivated accounts are refused even with valid credentials."""
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })
        except Exception as e:
            error_message = str(e)
            if "invalid" in error_message.lower() or "credentials" in error_message.lower():
                raise HTTPException(status_code=401, detail="Invalid email or password")
            raise HTTPException(status_code=500, detail=f"Login failed: {error_message}")

        if not auth_response.user or not auth_response.session:
            raise HTTPException(status_code=401, detail="Invalid credentials")

        try:
            profile = self._profile(auth_response.user.id)
        except Exception as e:
            logger.error(f"Could not load profile for {auth_response.user.id}: {e}")
            profile = None
        if profile and profile.get("is_active") is False:
            raise HTTPException(status_code=403, detail="This account has been deactivated")

        return TokenResponse(
            access_token=auth_response.session.access_token,
            token_type="bearer",
            user_id=auth_response.user.id,
            email=auth_response.user.email or login_data.email,
            role=profile.get("role") if profile else None
        )

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Resolve a bearer token to {id, email, user_metadata, is_email_confirmed}"""
        user_data = _cached_user(token)
        if user_data is not None:
            return user_data
        try:
            user_response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            raise HTTPException(status_code=401, detail="Authentication failed")

        if not user_response or not user_response.user:
            raise HTTPException(status_code=401, detail="Invalid or expired token")
        user = user_response.user
        user_data = {
            "id": user.id,
            "email": user.email,
            "user_metadata": user.user_metadata or {},
            "is_email_confirmed": bool(getattr(user, "email_confirmed_at", None)),
        }
        _remember_user(token, user_data)
        return user_data

    def logout(self, token: str) -> bool:
        _AUTH_USER_CACHE.pop(_token_key(token), None)
        try:
            # Supabase tokens are stateless JWTs; they stay valid until expiry
            self.supabase.auth.sign_out()
            return True
        except Exception as e:
            logger.warning(f"Sign-out failed: {e}")
            return False
