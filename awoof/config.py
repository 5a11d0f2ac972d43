"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded in production)
    - JWT secrets are at least 32 characters (validated at startup)
    - get_settings() is cached (lru_cache) — single instance per process
    - Optional integrations (Paystack, WhatsApp, Brevo) are None when unset; their
      clients report "not configured" instead of failing at import time

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support (ADR: developer UX)
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

MIN_JWT_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://awoof:awoof@db:5432/awoof"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres provides postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Redis
    redis_url: str = "redis://localhost:6379/0"

    # Auth
    jwt_secret: str
    jwt_refresh_secret: str
    jwt_algorithm: str = "HS256"
    jwt_expires_in_minutes: int = 15
    jwt_refresh_expires_in_days: int = 7
    bcrypt_rounds: int = 12

    @field_validator("jwt_secret", "jwt_refresh_secret")
    @classmethod
    def check_secret_length(cls, v: str) -> str:
        if len(v) < MIN_JWT_SECRET_LENGTH:
            raise ValueError(
                f"JWT secrets must be at least {MIN_JWT_SECRET_LENGTH} characters",
            )
        return v

    # Paystack
    paystack_secret_key: str | None = None
    paystack_base_url: str = "https://api.paystack.co"
    paystack_timeout_seconds: float = 10.0

    # WhatsApp
    whatsapp_api_key: str | None = None
    whatsapp_api_url: str | None = None

    # Email (Brevo)
    brevo_api_key: str | None = None
    brevo_api_url: str = "https://api.brevo.com/v3/smtp/email"
    brevo_from_name: str = "Awoof"
    email_from: str = "noreply@awoof.com"
    email_max_retries: int = 3
    email_base_delay_ms: int = 1000

    # University registries
    university_api_timeout_seconds: float = 10.0

    # API
    frontend_url: str = "http://localhost:3000"
    cors_origins: list[str] = ["http://localhost:3000"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
