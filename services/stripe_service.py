# ================================================================
# services/stripe_service.py — Stripe checkout + webhook reconciliation
# ================================================================
from typing import Any, Callable, Dict, Optional
import json
import logging

import stripe
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from core.config import Settings
from core.exceptions import SignatureInvalidException, UpstreamException
from models.models import (
    Subscription,
    SubscriptionStatus,
    SubscriptionType,
    Transaction,
    TransactionStatus,
    User,
    WebhookEvent,
)
from services.activity_service import log_activity
from services.quota_service import get_active_subscription

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"
INVOICE_PAYMENT_SUCCEEDED = "invoice.payment_succeeded"
INVOICE_PAYMENT_FAILED = "invoice.payment_failed"


def _to_amount(cents: Optional[int]) -> float:
    return (cents or 0) / 100


def _parse_id(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _invoice_subscription_ref(invoice: Dict[str, Any]) -> Optional[str]:
    """Subscription id of an invoice, on both old and new API shapes."""
    if invoice.get("subscription"):
        return invoice["subscription"]
    details = (invoice.get("parent") or {}).get("subscription_details") or {}
    return details.get("subscription")


# ------------------------
# Checkout
# ------------------------
def create_checkout_session(
    session: Session,
    settings: Settings,
    customer_email: str,
    price_id: str,
    user_id: int,
    subscription_type_id: int,
):
    """
    Create a Stripe Checkout Session for a subscription plan and record a
    pending transaction correlated by the session id.
    """
    try:
        checkout_session = stripe.checkout.Session.create(
            api_key=settings.STRIPE_SECRET_KEY,
            customer_email=customer_email,
            mode="subscription",
            payment_method_types=["card"],
            line_items=[{"price": price_id, "quantity": 1}],
            success_url=settings.STRIPE_SUCCESS_URL,
            cancel_url=settings.STRIPE_CANCEL_URL,
            metadata={
                "userId": str(user_id),
                "subscriptionTypeId": str(subscription_type_id),
            },
        )
    except stripe.StripeError as e:
        logger.error("❌ Stripe checkout error for user %s: %s", user_id, e)
        raise UpstreamException(getattr(e, "user_message", None) or "Failed to create checkout session")

    logger.info("✅ Checkout session %s created for user %s", checkout_session.id, user_id)

    current = get_active_subscription(session, user_id)
    if current is not None:
        session.add(
            Transaction(
                subscription_id=current.id,
                status=TransactionStatus.PENDING.value,
                amount=0.0,
                transaction_code=checkout_session.id,
            )
        )
        try:
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            raise

    return checkout_session


# ------------------------
# Webhook verification
# ------------------------
def verify_webhook_signature(payload: bytes, signature: Optional[str], secret: Optional[str]) -> Dict[str, Any]:
    """Verify the Stripe-Signature header against the raw body and return the event."""
    if not signature:
        raise SignatureInvalidException("Missing stripe-signature header")
    if not secret:
        raise SignatureInvalidException("Webhook secret not configured")

    try:
        stripe.Webhook.construct_event(payload=payload, sig_header=signature, secret=secret)
    except ValueError as e:
        logger.warning("❌ Invalid webhook payload: %s", e)
        raise SignatureInvalidException("Invalid payload")
    except stripe.SignatureVerificationError as e:
        logger.warning("❌ Invalid webhook signature: %s", e)
        raise SignatureInvalidException()

    return json.loads(payload)


# ------------------------
# Reconciliation
# ------------------------
class BillingReconciler:
    """
    Applies Stripe events to local subscription and transaction state.

    Each event is applied in a single commit together with its WebhookEvent
    receipt. Events that cannot be correlated (missing metadata, unknown
    subscription reference) are logged and ignored so Stripe does not keep
    redelivering them; database failures roll back and propagate.
    """

    def __init__(self, session: Session, deduplicate: bool = False):
        self.session = session
        self.deduplicate = deduplicate
        self._handlers: Dict[str, Callable[[Dict[str, Any]], None]] = {
            CHECKOUT_COMPLETED: self._apply_checkout_completed,
            INVOICE_PAYMENT_SUCCEEDED: self._apply_invoice_payment_succeeded,
            INVOICE_PAYMENT_FAILED: self._apply_invoice_payment_failed,
        }

    # -------- public entry points --------
    def dispatch(self, event: Dict[str, Any]) -> bool:
        """Apply one event. Returns False when it was ignored."""
        event_id = event.get("id") or ""
        event_type = event.get("type") or ""

        if self.deduplicate and event_id and self._already_processed(event_id):
            logger.info("↩️ Skipping already processed event %s (%s)", event_id, event_type)
            return False

        receipt = WebhookEvent(
            stripe_event_id=event_id,
            event_type=event_type,
            payload=json.dumps(event),
        )
        handler = self._handlers.get(event_type)
        if handler is None:
            logger.info("ℹ️ Unhandled event type: %s", event_type)

        data_object = (event.get("data") or {}).get("object") or {}
        try:
            if handler is not None:
                handler(data_object)
            receipt.processed = True
            self.session.add(receipt)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            self._record_failure(receipt, e)
            raise

        return handler is not None

    def handle_checkout_completed(self, checkout_session: Dict[str, Any]) -> None:
        self._run(self._apply_checkout_completed, checkout_session)

    def handle_invoice_payment_succeeded(self, invoice: Dict[str, Any]) -> None:
        self._run(self._apply_invoice_payment_succeeded, invoice)

    def handle_invoice_payment_failed(self, invoice: Dict[str, Any]) -> None:
        self._run(self._apply_invoice_payment_failed, invoice)

    # -------- helpers --------
    def _run(self, apply: Callable[[Dict[str, Any]], None], data_object: Dict[str, Any]) -> None:
        try:
            apply(data_object)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise

    def _already_processed(self, event_id: str) -> bool:
        statement = select(WebhookEvent).where(
            WebhookEvent.stripe_event_id == event_id,
            WebhookEvent.processed == True,  # noqa: E712
        )
        return self.session.exec(statement).first() is not None

    def _record_failure(self, receipt: WebhookEvent, error: Exception) -> None:
        failed = WebhookEvent(
            stripe_event_id=receipt.stripe_event_id,
            event_type=receipt.event_type,
            payload=receipt.payload,
            processed=False,
            processing_error=str(error)[:1000],
        )
        try:
            self.session.add(failed)
            self.session.commit()
        except SQLAlchemyError as log_error:
            self.session.rollback()
            logger.error("❌ Could not record webhook failure for %s: %s", receipt.stripe_event_id, log_error)

    def _find_subscription(self, stripe_subscription_id: Optional[str]) -> Optional[Subscription]:
        if not stripe_subscription_id:
            return None
        statement = select(Subscription).where(Subscription.stripe_subscription_id == stripe_subscription_id)
        return self.session.exec(statement).first()

    # -------- event handlers (stage changes, caller commits) --------
    def _apply_checkout_completed(self, checkout_session: Dict[str, Any]) -> None:
        session_id = checkout_session.get("id")
        if not session_id:
            logger.error("❌ Checkout session without an id, ignoring")
            return

        metadata = checkout_session.get("metadata") or {}
        user_id = _parse_id(metadata.get("userId"))
        subscription_type_id = _parse_id(metadata.get("subscriptionTypeId"))

        if not user_id or not subscription_type_id:
            logger.error("❌ Missing metadata in checkout session %s", session_id)
            return

        if self.session.get(User, user_id) is None or self.session.get(SubscriptionType, subscription_type_id) is None:
            logger.error(
                "❌ Checkout %s references unknown user %s or plan %s",
                session_id, user_id, subscription_type_id,
            )
            return

        active = self.session.exec(
            select(Subscription).where(
                Subscription.user_id == user_id,
                Subscription.status == SubscriptionStatus.ACTIVE.value,
            )
        ).all()
        for old in active:
            old.status = SubscriptionStatus.EXPIRED.value
            self.session.add(old)

        subscription = Subscription(
            user_id=user_id,
            subscription_type_id=subscription_type_id,
            status=SubscriptionStatus.ACTIVE.value,
            stripe_subscription_id=checkout_session.get("subscription"),
            stripe_customer_id=checkout_session.get("customer"),
        )
        self.session.add(subscription)
        self.session.flush()

        amount = _to_amount(checkout_session.get("amount_total"))
        invoice = checkout_session.get("invoice") or None
        transaction = self.session.exec(
            select(Transaction).where(
                Transaction.transaction_code == session_id,
                Transaction.status == TransactionStatus.PENDING.value,
            )
        ).first()

        if transaction is not None:
            transaction.status = TransactionStatus.PAID.value
            transaction.amount = amount
            transaction.invoice = invoice
        else:
            transaction = Transaction(
                subscription_id=subscription.id,
                status=TransactionStatus.PAID.value,
                amount=amount,
                transaction_code=session_id,
                invoice=invoice,
            )
        self.session.add(transaction)

        log_activity(self.session, user_id, "Subscription Activated", "New subscription activated successfully")
        logger.info("✅ Subscription created for user %s (expired %d previous)", user_id, len(active))

    def _apply_invoice_payment_succeeded(self, invoice: Dict[str, Any]) -> None:
        subscription = self._find_subscription(_invoice_subscription_ref(invoice))
        if subscription is None:
            logger.error("❌ Subscription not found for invoice %s", invoice.get("id"))
            return

        self.session.add(
            Transaction(
                subscription_id=subscription.id,
                status=TransactionStatus.PAID.value,
                amount=_to_amount(invoice.get("amount_paid")),
                transaction_code=invoice.get("payment_intent"),
                invoice=invoice.get("hosted_invoice_url") or None,
            )
        )

        if subscription.status != SubscriptionStatus.ACTIVE.value:
            if subscription.status == SubscriptionStatus.EXPIRED.value:
                logger.warning("⚠️ Reactivating superseded subscription %s on invoice payment", subscription.id)
            subscription.status = SubscriptionStatus.ACTIVE.value
            self.session.add(subscription)

        logger.info("✅ Payment recorded for subscription %s", subscription.id)

    def _apply_invoice_payment_failed(self, invoice: Dict[str, Any]) -> None:
        subscription = self._find_subscription(_invoice_subscription_ref(invoice))
        if subscription is None:
            logger.error("❌ Subscription not found for failed invoice %s", invoice.get("id"))
            return

        self.session.add(
            Transaction(
                subscription_id=subscription.id,
                status=TransactionStatus.FAILED.value,
                amount=_to_amount(invoice.get("amount_due")),
                transaction_code=invoice.get("payment_intent") or "failed",
                invoice=invoice.get("hosted_invoice_url") or None,
            )
        )

        subscription.status = SubscriptionStatus.PAUSED.value
        self.session.add(subscription)

        log_activity(
            self.session,
            subscription.user_id,
            "Payment Failed",
            "Subscription payment failed - subscription paused",
        )
        logger.warning("⚠️ Payment failed for subscription %s", subscription.id)
