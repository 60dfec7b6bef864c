from pydantic_settings import BaseSettings
from pydantic import field_validator, model_validator
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


# Secrets that must never reach production
WEAK_SECRET_KEYS = {
    "development-secret-key-change-in-production",
    "changeme",
    "secret",
    "password",
    "test",
    "dev",
}

MIN_PRODUCTION_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = "postgresql+asyncpg://localhost:5432/feedback_forms"

    @field_validator('DATABASE_URL', mode='before')
    @classmethod
    def convert_database_url(cls, v: str) -> str:
        """Convert postgresql:// to postgresql+asyncpg:// for async support."""
        if v and v.startswith('postgresql://'):
            return v.replace('postgresql://', 'postgresql+asyncpg://', 1)
        return v

    # Auth
    SECRET_KEY: str = "development-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Database pool and slow query logging
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    SLOW_QUERY_THRESHOLD_MS: int = 500

    # CORS
    FRONTEND_URL: str = "http://localhost:3000"

    # Public links are rendered as {PUBLIC_FORM_BASE_URL}/{public_url}
    PUBLIC_FORM_BASE_URL: str = "http://localhost:3000/formview"

    # Rate limiting
    REDIS_URL: str | None = None
    RATE_LIMIT_REDIS_ENABLED: bool = False
    RATE_LIMIT_FAIL_CLOSED: bool = False

    # CSV export timestamps are rendered in this zone
    EXPORT_TIMEZONE: str = "UTC"

    @field_validator('EXPORT_TIMEZONE')
    @classmethod
    def validate_export_timezone(cls, v: str) -> str:
        """Reject zone names the tz database does not know."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}")
        return v

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    ENABLE_DOCS: bool | None = None

    @model_validator(mode='after')
    def validate_production_secrets(self) -> "Settings":
        """Refuse to boot production with a guessable signing key."""
        if self.ENVIRONMENT == "production":
            if self.SECRET_KEY in WEAK_SECRET_KEYS:
                raise ValueError("SECRET_KEY uses a known weak value")
            if len(self.SECRET_KEY) < MIN_PRODUCTION_SECRET_LENGTH:
                raise ValueError(
                    f"SECRET_KEY must be at least {MIN_PRODUCTION_SECRET_LENGTH} characters in production"
                )
        return self

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def docs_enabled(self) -> bool:
        """API docs default to on outside production."""
        if self.ENABLE_DOCS is not None:
            return self.ENABLE_DOCS
        return not self.is_production

    @property
    def sqlalchemy_echo(self) -> bool:
        # SECURITY: never echo SQL (and bound parameters) in production
        return self.DEBUG and not self.is_production

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
