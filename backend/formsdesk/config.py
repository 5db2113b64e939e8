"""Application configuration"""
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Database
    DATABASE_URL: str = "sqlite:///./formsdesk.db"
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_POOL_TIMEOUT: int = 30
    DATABASE_POOL_RECYCLE: int = 3600  # Recycle connections after 1 hour

    # JWT Authentication
    JWT_SECRET: Optional[str] = None        # HMAC key; >= 32 random bytes in production
    JWT_ALGORITHM: str = "HS256"
    TOKEN_EXPIRE_SECONDS: int = 7 * 24 * 60 * 60
    AUTH_COOKIE_NAME: str = "admin_token"
    MIN_PASSWORD_LENGTH: int = 8

    # Expired session sweep (0 disables the background task)
    SESSION_CLEANUP_INTERVAL_SECONDS: int = 3600

    # Site
    ENVIRONMENT: str = "development"  # development or production
    TENANT_ID: str = "default"        # tenant that owns submissions posted to this site
    SITE_URL: Optional[str] = None
    FROM_EMAIL: Optional[str] = None

    # AWS (SES notifications + S3 resume storage)
    AWS_REGION: str = "us-east-1"
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[str] = None
    S3_BUCKET: Optional[str] = None
    S3_ENDPOINT_URL: Optional[str] = None   # MinIO / R2 compatible endpoint
    MAX_RESUME_SIZE: int = 5 * 1024 * 1024  # 5MB

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: str = "http://localhost:4321"

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: List[str] = ["100/minute", "1000/hour"]
    RATE_LIMIT_STORAGE_URI: str = "memory://"  # Use redis:// for production
    TRUST_PROXY_HEADERS: bool = False  # Set True only behind a proxy that overwrites cf-connecting-ip / x-forwarded-for

    # Monitoring
    METRICS_ENABLED: bool = True
    METRICS_PATH: str = "/metrics"

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string into list"""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.ENVIRONMENT.lower() == "production"

    @property
    def default_from_email(self) -> str:
        """Sender address used when a tenant has none configured"""
        if self.FROM_EMAIL:
            return self.FROM_EMAIL
        host = (self.SITE_URL or "example.com").split("://")[-1].rstrip("/")
        return f"noreply@{host}"


settings = Settings()
