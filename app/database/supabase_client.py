from supabase import create_client, Client
from app.config import settings
import logging

logger = logging.getLogger(__name__)


class SupabaseClient:
    _client: Client = None
    _service_client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        """Shared anon-key client used by request handlers"""
        if cls._client is None:
            if not settings.supabase_url or not settings.supabase_key:
                raise RuntimeError("SUPABASE_URL and SUPABASE_KEY must be set")
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
            logger.info("Supabase client initialised for %s", settings.supabase_url)
        return cls._client

    @classmethod
    def get_service_client(cls) -> Client:
        """Service-role client for the equb activation sweep, which runs without a user session.
        Falls back to the anon client when no service key is configured."""
        if cls._service_client is None and settings.supabase_service_role_key:
            cls._service_client = create_client(
                settings.supabase_url, settings.supabase_service_role_key
            )
        if cls._service_client is None:
            logger.warning("SUPABASE_SERVICE_ROLE_KEY not set; activation sweep uses the anon client")
            return cls.get_client()
        return cls._service_client


def get_supabase() -> Client:
    return SupabaseClient.get_client()
