"""Base configuration settings."""

import enum
import os
import secrets
import warnings
from typing import List, Optional

from pydantic import Field, ValidationInfo, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AuthMode(str, enum.Enum):
    """Authentication mode injected into the access layer at startup.

    ``dev_bypass`` lets configured demo patients sign in with the demo code and
    resolves the session to the demo patient without a cookie. It is refused
    in production.
    """

    NORMAL = "normal"
    DEV_BYPASS = "dev_bypass"


class Settings(BaseSettings):
    """Application settings.

    Note: values here control who can read patient records. Secrets must come
    from the environment in any deployed environment.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Evexia"
    app_version: str = "0.1.0"
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    log_format: str = "console"
    allowed_origins: List[str] = ["*"]

    # Database
    database_url: str = "sqlite:///./evexia.db"
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # Sessions
    jwt_secret_key: str = Field(
        default_factory=lambda: os.getenv("JWT_SECRET_KEY", ""),
        description="Session signing key - MUST be set outside development",
    )
    jwt_algorithm: str = "HS256"
    session_cookie_name: str = "evexia_session"
    session_ttl_hours: int = 24

    # Auth mode and demo accounts
    auth_mode: AuthMode = AuthMode.NORMAL
    demo_patient_id: Optional[str] = None
    demo_patient_emails: List[str] = []
    demo_code: str = "12345678"

    # Share tokens
    share_token_default_ttl_hours: float = 24
    share_token_max_ttl_hours: Optional[float] = None

    # One-time passcodes
    otp_length: int = 6
    otp_ttl_minutes: int = 10
    otp_max_attempts: int = 3
    otp_max_sends_per_hour: int = 5

    # Email delivery
    email_backend: str = "log"  # "log" or "ses"
    email_from: str = "no-reply@evexia.health"

    # AWS / AI
    aws_region: str = "us-east-1"
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    ai_enabled: bool = False
    ai_model_id: Optional[str] = "anthropic.claude-3-haiku-20240307-v1:0"
    ai_max_tokens: int = 2000
    ai_temperature: float = 0.3

    # Summaries
    summary_cooldown_seconds: int = 30

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_secret_key(cls, v: str, info: ValidationInfo) -> str:
        """Generate a throwaway key in development, refuse a missing one elsewhere."""
        if not v or "change-me" in v.lower():
            env = os.getenv("ENVIRONMENT", "development").lower()
            if env in ["production", "staging"]:
                raise ValueError(
                    f"{info.field_name} must be set to a secure value in {env}"
                )
            secure_key = secrets.token_urlsafe(64)
            warnings.warn(
                f"{info.field_name} is not set. Generated a temporary development key; "
                "sessions will not survive a restart.",
                stacklevel=2,
            )
            return secure_key
        return v

    @field_validator("demo_patient_emails")
    @classmethod
    def normalize_demo_emails(cls, v: List[str]) -> List[str]:
        """Compare demo emails case-insensitively."""
        return [email.strip().lower() for email in v if email.strip()]

    @model_validator(mode="after")
    def validate_auth_mode(self) -> "Settings":
        """Dev bypass must never be active in production."""
        if (
            self.auth_mode == AuthMode.DEV_BYPASS
            and self.environment.lower() == "production"
        ):
            raise ValueError("auth_mode=dev_bypass is not allowed in production")
        if self.share_token_max_ttl_hours is not None and (
            self.share_token_max_ttl_hours < self.share_token_default_ttl_hours
        ):
            raise ValueError(
                "share_token_max_ttl_hours must not be below the default TTL"
            )
        return self
