from pydantic_settings import BaseSettings
from typing import List, Union
from pydantic import field_validator, model_validator
import json


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # API Settings
    API_V1_STR: str = "/api"
    PROJECT_NAME: str = "SEMI Program Portal API"

    # "production" or "development"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Database Settings
    DATABASE_URL: str = ""
    DEV_DATABASE_URL: str = "sqlite:///./portal_dev.db"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def SQLALCHEMY_DATABASE_URL(self) -> str:
        return self.DATABASE_URL or self.DEV_DATABASE_URL

    # Session Settings
    SESSION_SECRET: str = ""
    SESSION_COOKIE_NAME: str = "portal.sid"
    SESSION_TTL_SECONDS: int = 7 * 24 * 60 * 60  # 1 week
    SESSION_PRUNE_INTERVAL_SECONDS: int = 15 * 60

    @property
    def session_signing_key(self) -> str:
        return self.SESSION_SECRET or "dev-secret-key-change-in-production"

    # Credential Settings
    BCRYPT_ROUNDS: int = 10  # ~100ms per hash
    VERIFICATION_CODE_EXPIRE_MINUTES: int = 10
    VERIFICATION_MAX_ATTEMPTS: int = 5
    REGISTRATION_VERIFICATION_VALID_HOURS: int = 24
    RESET_TOKEN_EXPIRE_MINUTES: int = 60
    FRONTEND_URL: str = "http://localhost:5000"

    # Two-factor Settings
    TOTP_ISSUER: str = "SEMI Program Portal"
    ENCRYPTION_KEY: str = ""  # Fernet key for two-factor secrets at rest

    # Redis Settings (for Celery task queue)
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0

    @property
    def REDIS_URL(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # AWS SES Settings
    AWS_REGION: str = "us-east-1"
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_SES_FROM_EMAIL: str = "no-reply@semiportal.ca"
    AWS_SES_FROM_NAME: str = "SEMI Program Portal"

    # CORS Settings - can be set as JSON string in .env
    BACKEND_CORS_ORIGINS: Union[List[str], str] = ["http://localhost:5000", "http://localhost:3000"]

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Union[List[str], str]) -> List[str]:
        """Parse CORS origins from JSON string or list"""
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                # If not valid JSON, split by comma
                return [origin.strip() for origin in v.split(",")]
        return v

    @model_validator(mode="after")
    def require_production_secrets(self) -> "Settings":
        """Refuse to start a production process without a session secret and durable store."""
        if self.is_production:
            if not self.SESSION_SECRET:
                raise ValueError("SESSION_SECRET environment variable must be set in production")
            if not self.DATABASE_URL:
                raise ValueError("DATABASE_URL must be set in production for session storage")
        return self

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
