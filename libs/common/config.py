from decimal import Decimal
from functools import lru_cache
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings."""

    # Application
    ENVIRONMENT: Literal["local", "development", "production"] = "local"
    LOG_LEVEL: str = "INFO"
    ADMIN_EMAIL: str = "admin@glowmart.in"
    TIMEZONE: str = "Asia/Kolkata"
    SITE_URL: str = "https://glowmart.in"

    # Database
    DATABASE_URL: str
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800
    # Log every SQL statement; off unless explicitly enabled
    DB_ECHO: bool = False

    # Supabase auth (tokens are issued by Supabase, only validated here)
    SUPABASE_URL: str = "http://localhost"
    SUPABASE_JWT_SECRET: str = "test-jwt-secret"

    # Microservices URLs
    STORE_SERVICE_URL: str = "http://store-service:8001"
    COMMUNICATIONS_SERVICE_URL: str = "http://communications-service:8004"

    # Email provider (Resend)
    RESEND_API_KEY: Optional[str] = None
    RESEND_API_URL: str = "https://api.resend.com"
    EMAIL_FROM: str = "GlowMart <onboarding@resend.dev>"

    # WhatsApp Business (credentials live in site_settings)
    WHATSAPP_GRAPH_URL: str = "https://graph.facebook.com/v18.0"
    WHATSAPP_DEFAULT_COUNTRY_CODE: str = "91"

    # Checkout
    FREE_SHIPPING_THRESHOLD: Decimal = Decimal("499")
    SHIPPING_FEE: Decimal = Decimal("49")
    DEFAULT_GST_PERCENT: Decimal = Decimal("18")

    # Tally export
    TALLY_COMPANY_NAME: str = "GlowMart"
    # Empty keeps every voucher intra-state (CGST + SGST)
    TALLY_COMPANY_STATE: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str]) -> str:
        if isinstance(v, str):
            if v.startswith("postgresql://"):
                return v.replace("postgresql://", "postgresql+psycopg://", 1)
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Return the global settings instance, cached.
    """
    return Settings()
