from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime


class SubscriptionTypeRead(BaseModel):
    id: int
    name: str
    abilities: List[str] = []
    max_riders_allowed: int
    stripe_price_id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SubscriptionRead(BaseModel):
    id: int
    user_id: int
    subscription_type_id: int
    status: str
    subscription_date: datetime
    stripe_subscription_id: Optional[str] = None
    stripe_customer_id: Optional[str] = None
    subscription_type: Optional[SubscriptionTypeRead] = None

    model_config = ConfigDict(from_attributes=True)


class CheckoutRequest(BaseModel):
    subscription_type_id: int = Field(..., gt=0)


class CheckoutResponse(BaseModel):
    session_id: str
    url: Optional[str] = None


class TransactionRead(BaseModel):
    id: int
    subscription_id: int
    status: str
    amount: float
    transaction_code: Optional[str] = None
    invoice: Optional[str] = None
    transaction_date: datetime
    subscription: Optional[SubscriptionRead] = None

    model_config = ConfigDict(from_attributes=True)
