# core/security.py
from datetime import datetime, timedelta
from typing import Optional, Dict, Any, Callable
import logging
import uuid

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlmodel import Session

from core.config import get_settings
from core.database import get_session
from core.exceptions import ForbiddenException, SubscriptionRequiredException, UnauthorizedException
from models.models import Subscription, User
from services.quota_service import get_active_subscription

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


# ========================================
# 🔐 Password Hashing (Argon2)
# ========================================
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash password using Argon2."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password using Argon2."""
    return pwd_context.verify(plain_password, hashed_password)


# ========================================
# 🔑 Token Helpers
# ========================================
def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    settings = get_settings()
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    # jti keeps tokens issued within the same second distinct
    to_encode.update({"exp": expire, "jti": uuid.uuid4().hex})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_token_for_user(user: User) -> str:
    return create_access_token({"sub": user.email, "user_id": user.id})


def decode_token(token: str) -> dict:
    """Decode JWT and return payload."""
    settings = get_settings()
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        raise UnauthorizedException("Token expired")
    except JWTError:
        raise UnauthorizedException("Invalid token")


# ========================================
# 👤 Authentication
# ========================================
def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    session: Session = Depends(get_session),
) -> User:
    """Extract user from bearer token and load the full record."""
    if not token:
        raise UnauthorizedException("No token provided")

    payload = decode_token(token)
    user_id = payload.get("user_id")
    if not user_id:
        raise UnauthorizedException("Invalid token payload")

    user = session.get(User, user_id)
    if not user or not user.is_active:
        raise UnauthorizedException("User not found or inactive")

    # Only the most recently issued token is live; logout clears it
    if user.token is None or user.token != token:
        raise UnauthorizedException("Session has ended, please log in again")

    return user


def get_current_subscription(
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> Optional[Subscription]:
    return get_active_subscription(session, current_user.id)


# ========================================
# 🎟️ Plan ability checks
# ========================================
def require_abilities(*abilities: str) -> Callable[..., User]:
    """
    Dependency factory: the caller's current plan must grant at least one
    of the given ability strings.
    """

    def dependency(
        current_user: User = Depends(get_current_user),
        subscription: Optional[Subscription] = Depends(get_current_subscription),
    ) -> User:
        if subscription is None:
            raise SubscriptionRequiredException()

        granted = subscription.subscription_type.abilities or []
        if not any(ability in granted for ability in abilities):
            logger.info("User %s lacks abilities %s", current_user.id, abilities)
            raise ForbiddenException("Insufficient permissions")
        return current_user

    return dependency
