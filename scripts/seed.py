# scripts/seed.py

import os
import sys
import argparse

from dotenv import load_dotenv
from sqlmodel import Session, select

# Ensure root path for relative imports
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import Settings, get_settings
from core.database import build_engine, create_db_and_tables
from core.security import hash_password
from models.models import PlanName, Subscription, SubscriptionStatus, SubscriptionType, User, UserStatus

# ✅ Load environment variables
load_dotenv()

BASE_ABILITIES = ["rider_view", "rider_comment"]
BASIC_ABILITIES = BASE_ABILITIES + ["rider_edit", "project_create"]
PRO_ABILITIES = BASIC_ABILITIES + ["export_pdf", "collaboration"]
ENTERPRISE_ABILITIES = PRO_ABILITIES + ["priority_support"]


def plan_definitions(settings: Settings) -> list:
    """The four tiers; ``max_riders_allowed=0`` is unlimited."""
    return [
        {
            "name": PlanName.FREE.value,
            "abilities": BASE_ABILITIES,
            "max_riders_allowed": 1,
        },
        {
            "name": PlanName.BASIC.value,
            "abilities": BASIC_ABILITIES,
            "max_riders_allowed": 10,
            "stripe_product_id": settings.STRIPE_BASIC_PRODUCT_ID,
            "stripe_price_id": settings.STRIPE_BASIC_PRICE_ID,
        },
        {
            "name": PlanName.PRO.value,
            "abilities": PRO_ABILITIES,
            "max_riders_allowed": 50,
            "stripe_product_id": settings.STRIPE_PRO_PRODUCT_ID,
            "stripe_price_id": settings.STRIPE_PRO_PRICE_ID,
        },
        {
            "name": PlanName.ENTERPRISE.value,
            "abilities": ENTERPRISE_ABILITIES,
            "max_riders_allowed": 0,
            "stripe_product_id": settings.STRIPE_ENTERPRISE_PRODUCT_ID,
            "stripe_price_id": settings.STRIPE_ENTERPRISE_PRICE_ID,
        },
    ]


def seed_subscription_types(session: Session, settings: Settings) -> dict:
    """Create missing plans; existing rows are left untouched."""
    plans = {}
    for definition in plan_definitions(settings):
        plan = session.exec(select(SubscriptionType).where(SubscriptionType.name == definition["name"])).first()
        if not plan:
            plan = SubscriptionType(**definition)
            session.add(plan)
            session.commit()
            session.refresh(plan)
            print(f"✅ Created '{plan.name}' subscription type")
        plans[plan.name] = plan
    return plans


def seed_admin(session: Session, settings: Settings, plan: SubscriptionType) -> User:
    admin_user = session.exec(select(User).where(User.email == settings.ADMIN_EMAIL)).first()

    if admin_user:
        print(f"✅ Admin user already exists ({settings.ADMIN_EMAIL})")
        return admin_user

    admin_user = User(
        name="Admin User",
        email=settings.ADMIN_EMAIL,
        password_hash=hash_password(settings.ADMIN_PASSWORD),
        status=UserStatus.ACTIVE.value,
    )
    session.add(admin_user)
    session.flush()

    session.add(
        Subscription(
            user_id=admin_user.id,
            subscription_type_id=plan.id,
            status=SubscriptionStatus.ACTIVE.value,
        )
    )
    session.commit()
    session.refresh(admin_user)
    print(f"✅ Added Admin User ({settings.ADMIN_EMAIL}) on the '{plan.name}' plan")
    return admin_user


def seed(settings: Settings, with_admin: bool = True) -> None:
    print("🌱 Seeding database...")
    engine = build_engine(settings.DATABASE_URL)
    create_db_and_tables(engine)

    with Session(engine) as session:
        plans = seed_subscription_types(session, settings)
        if with_admin:
            seed_admin(session, settings, plans[PlanName.PRO.value])

    print("🌱 Database seeding complete.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the Rider Service database.")
    parser.add_argument(
        "--no-admin",
        action="store_true",
        help="Only create subscription types",
    )
    args = parser.parse_args()

    seed(get_settings(), with_admin=not args.no_admin)
