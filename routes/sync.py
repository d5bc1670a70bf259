from fastapi import APIRouter, Depends
import httpx
import logging

from core.config import Settings, get_settings
from core.exceptions import UpstreamException, api_success
from core.security import get_current_user
from models.models import User
from services.bds_sync_service import sync_from_bds

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Sync"])


@router.post("/refresh")
async def refresh(
    current_user: User = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
):
    """Run the BDS sync now."""
    try:
        fetched = await sync_from_bds(settings)
    except (httpx.HTTPError, ValueError) as e:
        logger.error("❌ Manual BDS sync by user %s failed: %s", current_user.id, e)
        raise UpstreamException("BDS sync failed")

    if fetched is None:
        return api_success({"message": "BDS sync is disabled", "fetched": 0})
    return api_success({"message": "BDS sync completed successfully", "fetched": fetched})
