# ================================================================
# services/quota_service.py — plan quota enforcement
# ================================================================
from typing import Optional
import logging

from sqlalchemy import desc, func
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from core.exceptions import LimitExceededException, SubscriptionRequiredException
from models.models import Rider, Subscription, SubscriptionStatus, SubscriptionType, User

logger = logging.getLogger(__name__)


def can_create_resource(current_count: int, plan: SubscriptionType) -> bool:
    """Pure quota predicate; ``max_riders_allowed == 0`` is the unlimited tier."""
    if plan.max_riders_allowed == 0:
        return True
    return current_count < plan.max_riders_allowed


def get_active_subscription(session: Session, user_id: int) -> Optional[Subscription]:
    """Most recent ``active`` subscription of the user, with its plan loaded."""
    statement = (
        select(Subscription)
        .where(
            Subscription.user_id == user_id,
            Subscription.status == SubscriptionStatus.ACTIVE.value,
        )
        .options(selectinload(Subscription.subscription_type))
        .order_by(desc(Subscription.subscription_date), desc(Subscription.id))
    )
    return session.exec(statement).first()


def count_owned_riders(session: Session, owner_id: int) -> int:
    return session.exec(select(func.count()).select_from(Rider).where(Rider.owner_id == owner_id)).one()


def reserve_rider_slot(session: Session, user: User) -> SubscriptionType:
    """
    Check the rider quota for ``user`` inside the caller's open transaction.

    The owner row is locked (``SELECT ... FOR UPDATE``) before counting, so a
    second concurrent creation for the same owner waits until the first
    commits and then sees its rider. The caller must insert the rider and
    commit in the same transaction.
    """
    session.exec(select(User).where(User.id == user.id).with_for_update()).one()

    subscription = get_active_subscription(session, user.id)
    if subscription is None:
        raise SubscriptionRequiredException()

    plan = subscription.subscription_type
    current_count = count_owned_riders(session, user.id)
    if not can_create_resource(current_count, plan):
        logger.info(
            "Rider limit reached for user %s (%s/%s on %s)",
            user.id, current_count, plan.max_riders_allowed, plan.name,
        )
        raise LimitExceededException(
            f"Rider limit exceeded. Your plan allows {plan.max_riders_allowed} rider(s)."
        )
    return plan
