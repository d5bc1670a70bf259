# routes/webhooks.py — Stripe webhook (no auth, raw body)
from fastapi import APIRouter, Depends, Request
from sqlmodel import Session
import logging

from core.config import Settings, get_settings
from core.database import get_session
from core.rate_limit import limiter
from services.stripe_service import BillingReconciler, verify_webhook_signature

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Webhooks"])


@router.post("/stripe")
@limiter.exempt
async def stripe_webhook(
    request: Request,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    """
    Verify the Stripe signature against the raw body and apply the event.
    Bad signatures are rejected with 400 so Stripe retries delivery;
    unknown event types are acknowledged and ignored.
    """
    payload = await request.body()
    event = verify_webhook_signature(payload, request.headers.get("stripe-signature"), settings.STRIPE_WEBHOOK_SECRET)

    logger.info("📨 Received webhook: %s (%s)", event.get("type"), event.get("id"))
    reconciler = BillingReconciler(session, deduplicate=settings.STRIPE_WEBHOOK_DEDUPLICATE)
    reconciler.dispatch(event)

    return {"received": True}
