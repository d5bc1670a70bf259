# routes/subscriptions.py
from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session, select
from sqlalchemy import desc

from core.config import Settings, get_settings
from core.database import get_session
from core.exceptions import ForbiddenException, NotFoundException, ValidationException, api_success
from core.security import get_current_subscription, get_current_user
from models.models import Subscription, SubscriptionType, Transaction, User
from schemas.subscription_schema import (
    CheckoutRequest,
    CheckoutResponse,
    SubscriptionRead,
    SubscriptionTypeRead,
    TransactionRead,
)
from services.stripe_service import create_checkout_session

router = APIRouter(tags=["Subscriptions"])


@router.get("/types")
def list_subscription_types(session: Session = Depends(get_session)):
    types = session.exec(select(SubscriptionType).order_by(SubscriptionType.id)).all()
    return api_success([SubscriptionTypeRead.model_validate(t).model_dump(mode="json") for t in types])


@router.get("/my-subscription")
def get_my_subscription(subscription: Optional[Subscription] = Depends(get_current_subscription)):
    if subscription is None:
        raise NotFoundException("No active subscription found")
    return api_success(SubscriptionRead.model_validate(subscription).model_dump(mode="json"))


@router.post("/checkout")
def create_checkout(
    payload: CheckoutRequest,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    """Start a Stripe checkout for the chosen plan."""
    plan = session.get(SubscriptionType, payload.subscription_type_id)
    if not plan:
        raise NotFoundException("Subscription type not found")

    if not plan.stripe_price_id:
        raise ValidationException("This subscription type is not available for purchase")

    checkout_session = create_checkout_session(
        session,
        settings,
        customer_email=current_user.email,
        price_id=plan.stripe_price_id,
        user_id=current_user.id,
        subscription_type_id=plan.id,
    )
    return api_success(CheckoutResponse(session_id=checkout_session.id, url=checkout_session.url).model_dump())


@router.get("/transactions")
def list_transactions(current_user: User = Depends(get_current_user), session: Session = Depends(get_session)):
    transactions = session.exec(
        select(Transaction)
        .join(Subscription, Transaction.subscription_id == Subscription.id)
        .where(Subscription.user_id == current_user.id)
        .order_by(desc(Transaction.transaction_date), desc(Transaction.id))
    ).all()
    return api_success([TransactionRead.model_validate(t).model_dump(mode="json") for t in transactions])


@router.get("/transactions/{transaction_id}")
def get_transaction(
    transaction_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    transaction = session.get(Transaction, transaction_id)
    if not transaction:
        raise NotFoundException("Transaction not found")

    if transaction.subscription.user_id != current_user.id:
        raise ForbiddenException("Access denied")

    return api_success(TransactionRead.model_validate(transaction).model_dump(mode="json"))
