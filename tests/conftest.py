import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["ENVIRONMENT"] = "test"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BDS_SYNC_ENABLED"] = "false"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test"
os.environ["STRIPE_BASIC_PRICE_ID"] = "price_basic"
os.environ["STRIPE_PRO_PRICE_ID"] = "price_pro"
os.environ["STRIPE_ENTERPRISE_PRICE_ID"] = "price_enterprise"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select

import models.models  # noqa: F401
from core.config import get_settings
from core.security import hash_password
from main import create_app
from models.models import Subscription, SubscriptionStatus, SubscriptionType, User
from scripts.seed import seed_subscription_types


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def plans(engine):
    with Session(engine) as session:
        seeded = seed_subscription_types(session, get_settings())
        return {name: plan.id for name, plan in seeded.items()}


@pytest.fixture
def client(engine, plans):
    app = create_app(engine=engine)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register_user(client):
    """Register through the API; returns (auth headers, user payload)."""

    def _register(email: str, name: str = "Test User", password: str = "secret123"):
        response = client.post(
            "/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        return {"Authorization": f"Bearer {data['token']}"}, data["user"]

    return _register


@pytest.fixture
def switch_plan(engine, plans):
    """Expire the user's active subscriptions and put them on ``plan_name``."""

    def _switch(user_id: int, plan_name: str, **extra) -> int:
        with Session(engine) as session:
            for old in session.exec(
                select(Subscription).where(
                    Subscription.user_id == user_id,
                    Subscription.status == SubscriptionStatus.ACTIVE.value,
                )
            ).all():
                old.status = SubscriptionStatus.EXPIRED.value
                session.add(old)
            subscription = Subscription(
                user_id=user_id,
                subscription_type_id=plans[plan_name],
                status=SubscriptionStatus.ACTIVE.value,
                **extra,
            )
            session.add(subscription)
            session.commit()
            session.refresh(subscription)
            return subscription.id

    return _switch


@pytest.fixture
def make_user(session):
    """Insert a user row directly, bypassing the API."""

    def _make(email: str, name: str = "Direct User") -> User:
        user = User(name=name, email=email, password_hash=hash_password("secret123"))
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make


@pytest.fixture
def plan_rows(session, plans):
    return {name: session.get(SubscriptionType, plan_id) for name, plan_id in plans.items()}
