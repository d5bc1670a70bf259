# ==================================================================================
# core/config.py — Rider Service configuration (pydantic-settings + .env)
# ==================================================================================
from functools import lru_cache
from typing import List, Optional
import logging
import sys

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    # ------------------------
    # DATABASE CONFIG
    # ------------------------
    DATABASE_URL: str = "sqlite:///./rider_service.db"

    # ------------------------
    # SECURITY CONFIG
    # ------------------------
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # ------------------------
    # STRIPE / PAYMENT CONFIG
    # ------------------------
    STRIPE_SECRET_KEY: Optional[str] = None
    STRIPE_WEBHOOK_SECRET: Optional[str] = None
    # Skip webhook events whose id was already processed
    STRIPE_WEBHOOK_DEDUPLICATE: bool = False

    # Seed-time plan references
    STRIPE_BASIC_PRODUCT_ID: Optional[str] = None
    STRIPE_BASIC_PRICE_ID: Optional[str] = None
    STRIPE_PRO_PRODUCT_ID: Optional[str] = None
    STRIPE_PRO_PRICE_ID: Optional[str] = None
    STRIPE_ENTERPRISE_PRODUCT_ID: Optional[str] = None
    STRIPE_ENTERPRISE_PRICE_ID: Optional[str] = None

    # ------------------------
    # FRONTEND CONFIG
    # ------------------------
    CLIENT_URL: str = "http://localhost:3001"
    CORS_ORIGINS: List[str] = ["*"]

    @property
    def STRIPE_SUCCESS_URL(self) -> str:
        """Checkout success redirect; Stripe fills in the session id."""
        return f"{self.CLIENT_URL}/success?session_id={{CHECKOUT_SESSION_ID}}"

    @property
    def STRIPE_CANCEL_URL(self) -> str:
        return f"{self.CLIENT_URL}/cancel"

    # ------------------------
    # BDS SYNC CONFIG
    # ------------------------
    BDS_API_URL: str = "http://localhost:3000"
    BDS_SYNC_ENABLED: bool = False
    BDS_SYNC_INTERVAL_MINUTES: int = 60 * 24
    BDS_SYNC_TIMEOUT_SECONDS: float = 30.0

    # ------------------------
    # RATE LIMITING
    # ------------------------
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: str = "100/15minutes"
    RATE_LIMIT_AUTH: str = "5/15minutes"

    # ------------------------
    # SEED ADMIN
    # ------------------------
    ADMIN_EMAIL: str = "admin@cfs.local"
    ADMIN_PASSWORD: str = "admin123"

    # ------------------------
    # ENVIRONMENT SETTINGS
    # ------------------------
    ENVIRONMENT: str = "development"  # 'development' | 'production' | 'test'
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    @property
    def IS_PRODUCTION(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Load settings once per process; exits on a broken environment."""
    try:
        loaded = Settings()
    except ValidationError as e:
        logger.critical("❌ Environment configuration error — missing or invalid settings!\n%s", e)
        sys.exit(1)
    logger.info("🌍 Environment: %s, Debug: %s", loaded.ENVIRONMENT, loaded.DEBUG)
    return loaded
