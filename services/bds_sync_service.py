# ================================================================
# services/bds_sync_service.py — one-way pull from the BDS API
# ================================================================
from typing import Any, Optional
import asyncio
import logging

import httpx

from core.config import Settings

logger = logging.getLogger(__name__)


async def sync_from_bds(settings: Settings, client: Optional[httpx.AsyncClient] = None) -> Optional[int]:
    """
    Pull reference data from BDS. Returns the number of images fetched, or
    None when the sync is disabled. Upstream failures propagate.
    """
    if not settings.BDS_SYNC_ENABLED:
        logger.info("BDS sync is disabled")
        return None

    logger.info("🔄 Starting BDS sync from %s", settings.BDS_API_URL)

    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(timeout=settings.BDS_SYNC_TIMEOUT_SECONDS)
    try:
        response = await client.get(f"{settings.BDS_API_URL.rstrip('/')}/images")
        response.raise_for_status()
        body: Any = response.json()
    finally:
        if owns_client:
            await client.aclose()

    images = body.get("data") if isinstance(body, dict) else None
    count = len(images or [])
    logger.info("✅ BDS sync completed, fetched %d images", count)
    return count


async def run_periodic_sync(settings: Settings) -> None:
    """Background loop started by the app lifespan when BDS sync is enabled."""
    interval = max(settings.BDS_SYNC_INTERVAL_MINUTES, 1) * 60
    while True:
        await asyncio.sleep(interval)
        try:
            await sync_from_bds(settings)
        except (httpx.HTTPError, ValueError) as e:
            logger.error("❌ Scheduled BDS sync failed: %s", e)
