from fastapi import APIRouter, Depends, Request, status
from sqlmodel import Session, select
from sqlalchemy.exc import IntegrityError
import logging

from core.database import get_session
from core.exceptions import (
    ConflictException,
    ForbiddenException,
    UnauthorizedException,
    api_success,
)
from core.rate_limit import AUTH_LIMIT, limiter
from core.security import create_token_for_user, get_current_user, hash_password, verify_password
from models.models import PlanName, Subscription, SubscriptionStatus, SubscriptionType, User, UserStatus
from schemas.subscription_schema import SubscriptionRead
from schemas.user_schema import UserCreate, UserLogin, UserWithSubscription
from services.quota_service import get_active_subscription

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"])


def _user_payload(session: Session, user: User) -> dict:
    subscription = get_active_subscription(session, user.id)
    data = UserWithSubscription.model_validate(user)
    data.subscription = SubscriptionRead.model_validate(subscription) if subscription else None
    return data.model_dump(mode="json")


# ==========================================================
# ✅ Register — creates user on the free plan
# ==========================================================
@router.post("/register", status_code=status.HTTP_201_CREATED)
@limiter.limit(AUTH_LIMIT)
def register(request: Request, user_data: UserCreate, session: Session = Depends(get_session)):
    existing = session.exec(select(User).where(User.email == user_data.email)).first()
    if existing:
        raise ConflictException("User with this email already exists")

    user = User(
        name=user_data.name,
        email=user_data.email,
        password_hash=hash_password(user_data.password),
        contact_phone=user_data.contact_phone,
        status=UserStatus.ACTIVE.value,
    )

    try:
        session.add(user)
        session.flush()

        free_plan = session.exec(select(SubscriptionType).where(SubscriptionType.name == PlanName.FREE.value)).first()
        if free_plan:
            session.add(
                Subscription(
                    user_id=user.id,
                    subscription_type_id=free_plan.id,
                    status=SubscriptionStatus.ACTIVE.value,
                )
            )
        else:
            logger.warning("⚠️ No '%s' plan seeded; %s registered without a subscription", PlanName.FREE.value, user.email)

        user.token = create_token_for_user(user)
        session.add(user)
        session.commit()
        session.refresh(user)
    except IntegrityError:
        session.rollback()
        raise ConflictException("User with this email already exists")

    logger.info("📝 Registered user %s", user.id)
    return api_success({"token": user.token, "user": _user_payload(session, user)})


# ==========================================================
# ✅ Login
# ==========================================================
@router.post("/login")
@limiter.limit(AUTH_LIMIT)
def login(request: Request, credentials: UserLogin, session: Session = Depends(get_session)):
    user = session.exec(select(User).where(User.email == credentials.email)).first()
    if not user:
        raise UnauthorizedException("Invalid email or password")

    if not verify_password(credentials.password, user.password_hash):
        raise UnauthorizedException("Invalid email or password")

    if not user.is_active:
        raise ForbiddenException("Account is suspended or deleted")

    user.token = create_token_for_user(user)
    session.add(user)
    session.commit()
    session.refresh(user)

    return api_success({"token": user.token, "user": _user_payload(session, user)})


# ==========================================================
# ✅ Current user
# ==========================================================
@router.get("/me")
def get_me(current_user: User = Depends(get_current_user), session: Session = Depends(get_session)):
    return api_success(_user_payload(session, current_user))


@router.post("/logout")
def logout(current_user: User = Depends(get_current_user), session: Session = Depends(get_session)):
    current_user.token = None
    session.add(current_user)
    session.commit()
    return api_success({"message": "Logged out successfully"})
