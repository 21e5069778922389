import asyncio
import logging
from app.config import settings
from app.database.supabase_client import SupabaseClient
from app.modules.memberships.service import MembershipService

logger = logging.getLogger(__name__)


async def check_and_activate_full_equbs():
    """Activate every Open equb whose approved members filled it up."""
    try:
        service = MembershipService(SupabaseClient.get_service_client())
        activated = service.activate_full_equbs()
        if not activated:
            logger.debug("No full equbs to activate")
            return []
        logger.info(f"Activated {len(activated)} full equb(s)")
        return activated
    except Exception as e:
        logger.error(f"Error in activation check: {str(e)}")
        return []


async def activation_scheduler_loop():
    """Background task that periodically activates full equbs"""
    while True:
        await check_and_activate_full_equbs()
        await asyncio.sleep(settings.activation_check_interval_seconds)
