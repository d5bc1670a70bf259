# models/models.py
from typing import Optional, List, Any
from datetime import datetime
from enum import Enum

from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import UniqueConstraint, Column, JSON
from pydantic import EmailStr


# ============================================================
# ENUMS
# ============================================================
class UserStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    DELETED = "deleted"


class ProjectPermissionLevel(str, Enum):
    READ = "read"
    COMMENT = "comment"
    EDIT = "edit"


class RiderPermissionLevel(str, Enum):
    COMMENT = "comment"
    EDIT = "edit"


class PlanName(str, Enum):
    FREE = "free"
    BASIC = "basic"
    PRO = "pro"
    ENTERPRISE = "enterprise"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    PAUSED = "paused"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


# ============================================================
# USER
# ============================================================
class User(SQLModel, table=True):
    __tablename__ = "user"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100)
    email: EmailStr = Field(unique=True, index=True, max_length=255, nullable=False)
    password_hash: str = Field(nullable=False)
    contact_phone: Optional[str] = Field(default=None, max_length=50)
    status: str = Field(default=UserStatus.ACTIVE.value, max_length=20, index=True)

    # Last issued access token; cleared on logout
    token: Optional[str] = Field(default=None)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    projects: List["Project"] = Relationship(back_populates="owner")
    riders: List["Rider"] = Relationship(back_populates="owner")
    subscriptions: List["Subscription"] = Relationship(back_populates="user")
    logs: List["UserLog"] = Relationship(back_populates="user")
    favorites: List["FavoriteItem"] = Relationship(back_populates="user")

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE.value


# ============================================================
# PROJECT
# ============================================================
class Project(SQLModel, table=True):
    __tablename__ = "project"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=200)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    owner: "User" = Relationship(back_populates="projects")
    riders: List["Rider"] = Relationship(back_populates="project")
    permissions: List["ProjectPermission"] = Relationship(
        back_populates="project",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


class ProjectPermission(SQLModel, table=True):
    __tablename__ = "project_permission"
    __table_args__ = (UniqueConstraint("project_id", "email", name="uq_project_permission_email"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="project.id", nullable=False, index=True)
    email: EmailStr = Field(max_length=255, nullable=False, index=True)
    permission: str = Field(max_length=20)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    project: "Project" = Relationship(back_populates="permissions")


# ============================================================
# RIDER
# ============================================================
class Rider(SQLModel, table=True):
    __tablename__ = "rider"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    data: Optional[Any] = Field(default=None, sa_column=Column(JSON))
    owner_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    project_id: Optional[int] = Field(default=None, foreign_key="project.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    owner: "User" = Relationship(back_populates="riders")
    project: Optional["Project"] = Relationship(back_populates="riders")
    permissions: List["RiderPermission"] = Relationship(
        back_populates="rider",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )
    comments: List["RiderComment"] = Relationship(
        back_populates="rider",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


class RiderPermission(SQLModel, table=True):
    __tablename__ = "rider_permission"
    __table_args__ = (UniqueConstraint("rider_id", "email", name="uq_rider_permission_email"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    rider_id: int = Field(foreign_key="rider.id", nullable=False, index=True)
    email: EmailStr = Field(max_length=255, nullable=False, index=True)
    permission: str = Field(max_length=20)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    rider: "Rider" = Relationship(back_populates="permissions")


# ============================================================
# RIDER COMMENT
# ============================================================
class RiderComment(SQLModel, table=True):
    __tablename__ = "rider_comment"

    id: Optional[int] = Field(default=None, primary_key=True)
    rider_id: int = Field(foreign_key="rider.id", nullable=False, index=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    title: Optional[str] = Field(default=None, max_length=200)
    content: str = Field(max_length=5000)
    status: Optional[str] = Field(default=None, max_length=30)
    position_xy: Optional[Any] = Field(default=None, sa_column=Column(JSON))
    date: datetime = Field(default_factory=datetime.utcnow)

    rider: "Rider" = Relationship(back_populates="comments")
    user: "User" = Relationship()


# ============================================================
# SUBSCRIPTION TYPE (plan)
# ============================================================
class SubscriptionType(SQLModel, table=True):
    __tablename__ = "subscription_type"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=50, unique=True, nullable=False)
    abilities: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    # 0 means unlimited
    max_riders_allowed: int = Field(default=0, ge=0)
    stripe_product_id: Optional[str] = Field(default=None, max_length=255)
    stripe_price_id: Optional[str] = Field(default=None, max_length=255)

    subscriptions: List["Subscription"] = Relationship(back_populates="subscription_type")


# ============================================================
# SUBSCRIPTION
# ============================================================
class Subscription(SQLModel, table=True):
    __tablename__ = "subscription"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    subscription_type_id: int = Field(foreign_key="subscription_type.id", nullable=False, index=True)
    status: str = Field(default=SubscriptionStatus.ACTIVE.value, max_length=20, index=True)
    subscription_date: datetime = Field(default_factory=datetime.utcnow)

    stripe_subscription_id: Optional[str] = Field(default=None, max_length=255, index=True)
    stripe_customer_id: Optional[str] = Field(default=None, max_length=255, index=True)

    user: "User" = Relationship(back_populates="subscriptions")
    subscription_type: "SubscriptionType" = Relationship(back_populates="subscriptions")
    transactions: List["Transaction"] = Relationship(back_populates="subscription")


# ============================================================
# TRANSACTION (billing ledger)
# ============================================================
class Transaction(SQLModel, table=True):
    __tablename__ = "billing_transaction"

    id: Optional[int] = Field(default=None, primary_key=True)
    subscription_id: int = Field(foreign_key="subscription.id", nullable=False, index=True)
    status: str = Field(default=TransactionStatus.PENDING.value, max_length=20, index=True)
    amount: float = Field(default=0.0)
    transaction_code: Optional[str] = Field(default=None, max_length=255, index=True)
    invoice: Optional[str] = Field(default=None)
    transaction_date: datetime = Field(default_factory=datetime.utcnow)

    subscription: "Subscription" = Relationship(back_populates="transactions")


# ============================================================
# USER ACTIVITY LOG
# ============================================================
class UserLog(SQLModel, table=True):
    __tablename__ = "user_log"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    title: str = Field(max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    date: datetime = Field(default_factory=datetime.utcnow, index=True)

    user: "User" = Relationship(back_populates="logs")


# ============================================================
# FAVORITE ITEM
# ============================================================
class FavoriteItem(SQLModel, table=True):
    __tablename__ = "favorite_item"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(max_length=200)
    data: Any = Field(default=None, sa_column=Column(JSON, nullable=False))

    user: "User" = Relationship(back_populates="favorites")


# ============================================================
# WEBHOOK EVENT LOG
# ============================================================
class WebhookEvent(SQLModel, table=True):
    __tablename__ = "webhook_event"

    id: Optional[int] = Field(default=None, primary_key=True)
    # Not unique: redeliveries are recorded as separate receipts
    stripe_event_id: str = Field(index=True, max_length=255)
    event_type: str = Field(max_length=100, index=True)

    payload: str = Field()
    processed: bool = Field(default=False)
    processing_error: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
