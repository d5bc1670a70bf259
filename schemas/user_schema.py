# user_schema.py
from pydantic import BaseModel, EmailStr, Field, ConfigDict
from typing import Optional
from datetime import datetime

from schemas.subscription_schema import SubscriptionRead


# ---------------------------
# Create & Auth
# ---------------------------
class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)
    contact_phone: Optional[str] = Field(default=None, max_length=50)


class UserLogin(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1)


# ---------------------------
# Read
# ---------------------------
class UserRead(BaseModel):
    id: int
    name: str
    email: str
    contact_phone: Optional[str] = None
    status: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserWithSubscription(UserRead):
    subscription: Optional[SubscriptionRead] = None


class AuthResponse(BaseModel):
    token: str
    user: UserWithSubscription
