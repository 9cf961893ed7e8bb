"""Application configuration."""

from functools import lru_cache
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "postgresql+asyncpg://leads:leads123@db:5432/leads"

    # Security (empty values make every auth check fail closed)
    WEBHOOK_SECRET: Optional[str] = None
    LEAD_API_TOKEN: Optional[str] = None

    # Email provider (Resend)
    RESEND_API_KEY: Optional[str] = None
    RESEND_API_URL: str = "https://api.resend.com"
    EMAIL_SENDER_NAME: str = "Product Delivery"
    EMAIL_SENDER_ADDRESS: str = "no-reply@example.com"
    SUPPORT_URL: Optional[str] = None

    # WhatsApp gateway (Z-API)
    ZAPI_BASE_URL: str = "https://api.z-api.io"
    ZAPI_INSTANCE_ID: Optional[str] = None
    ZAPI_TOKEN: Optional[str] = None
    ZAPI_CLIENT_TOKEN: Optional[str] = None
    WHATSAPP_COUNTRY_CODE: str = "55"

    # Database pool (ignored for SQLite)
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 5

    # Startup
    AUTO_CREATE_TABLES: bool = True

    # Outbound HTTP
    HTTP_TIMEOUT_SECONDS: float = 30.0

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()


@lru_cache()
def get_settings() -> Settings:
    """Dependency returning the process-wide settings."""
    return settings
