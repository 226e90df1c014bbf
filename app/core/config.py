"""Application configuration"""

from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional


class Settings(BaseSettings):
    """Application settings."""

    # API Configuration
    API_V1_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "TrackVault"
    VERSION: str = "1.0.0"
    DESCRIPTION: str = "Digital goods store: orders, memberships and entitlements"

    # Security
    SECRET_KEY: str = Field(...)
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=30)
    ALGORITHM: str = "HS256"

    # Database
    DATABASE_URL: str = Field(...)

    # Redis (Celery broker)
    REDIS_URL: str = Field(default="redis://localhost:6379")

    # Razorpay Payment Processing
    RAZORPAY_KEY_ID: str = Field(...)
    RAZORPAY_KEY_SECRET: Optional[str] = Field(default=None)
    RAZORPAY_WEBHOOK_SECRET: Optional[str] = Field(default=None)
    RAZORPAY_API_URL: str = Field(default="https://api.razorpay.com/v1")
    RAZORPAY_TIMEOUT_SECONDS: float = Field(default=30.0)

    # Checkout rules
    DEFAULT_CURRENCY: str = Field(default="INR")
    MAX_ITEMS_PER_ORDER: int = Field(default=50)
    MAX_MEMBERSHIP_MONTHS: int = Field(default=12)
    PROMO_CACHE_TTL_SECONDS: int = Field(default=300)  # 5 minutes
    PROMO_CACHE_MAX_ENTRIES: int = Field(default=100)

    # Idle order reaper
    REAPER_ENABLED: bool = Field(default=True)
    REAPER_INTERVAL_SECONDS: int = Field(default=120)
    PENDING_ORDER_TIMEOUT_SECONDS: int = Field(default=120)

    # Email SMTP Configuration
    SMTP_HOST: str = Field(default="localhost")
    SMTP_PORT: int = Field(default=587)
    SMTP_USERNAME: Optional[str] = Field(default=None)
    SMTP_PASSWORD: Optional[str] = Field(default=None)
    SMTP_USE_TLS: bool = Field(default=True)
    FROM_EMAIL: str = Field(default="noreply@trackvault.app")
    FROM_NAME: str = Field(default="TrackVault")
    SUPPORT_EMAIL: Optional[str] = Field(default=None)

    # CORS
    ALLOWED_HOSTS: list[str] = Field(default=["http://localhost:3000"])

    # Development
    LOG_LEVEL: str = Field(default="INFO")
    DEBUG: bool = Field(default=False)
    TESTING: bool = Field(default=False)

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
