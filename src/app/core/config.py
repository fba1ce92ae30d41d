from functools import lru_cache
from urllib.parse import urlparse

from pydantic import ValidationInfo, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MIN_SECRET_LENGTH = 32


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_name: str = "Fitness Muse API"
    app_env: str = "development"  # development, testing, production
    debug: bool = False

    # Security
    log_user_emails: bool = False  # Set to False in production for GDPR compliance
    allowed_app_url_domains: list[str] = ["localhost", "127.0.0.1"]
    cookie_secure: bool = True
    rate_limit_enabled: bool = True

    # Database
    database_url: str
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # Auth
    access_token_secret: str
    refresh_token_secret: str
    email_verification_secret: str
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 10
    email_verification_expire_hours: int = 24
    argon2_time_cost: int = 3
    argon2_memory_cost: int = 65536
    argon2_parallelism: int = 1

    # Trainer invitations
    invitation_expire_days: int = 3
    trainer_update_max_retries: int = 3
    trainer_page_size: int = 50
    trainer_page_size_max: int = 100

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Email (Resend)
    resend_api_key: str | None = None  # If not set, emails are logged but not sent
    email_from: str = "noreply@example.com"
    email_send_timeout_seconds: int = 10
    app_url: str = "http://localhost:3000"  # Frontend URL for confirmation links

    @field_validator("access_token_secret", "refresh_token_secret", "email_verification_secret")
    @classmethod
    def validate_secret(cls, v: str, info: ValidationInfo) -> str:
        if len(v) < MIN_SECRET_LENGTH:
            raise ValueError(
                f"{info.field_name.upper()} must be at least {MIN_SECRET_LENGTH} characters. "
                "Generate a secure secret with: openssl rand -hex 32"
            )
        return v

    @model_validator(mode="after")
    def validate_distinct_secrets(self) -> "Settings":
        secrets = {
            self.access_token_secret,
            self.refresh_token_secret,
            self.email_verification_secret,
        }
        if len(secrets) != 3:
            raise ValueError("Access, refresh and email verification secrets must all differ")
        return self

    @field_validator("cors_origins")
    @classmethod
    def validate_cors_origins(cls, v: list[str]) -> list[str]:
        """Validate CORS origins - reject wildcards when credentials are used."""
        for origin in v:
            if origin == "*":
                raise ValueError(
                    "CORS wildcard '*' is not allowed when allow_credentials=True. "
                    "Specify explicit origins instead."
                )
        return v

    @field_validator("app_url")
    @classmethod
    def validate_app_url(cls, v: str, info: ValidationInfo) -> str:
        """Validate APP_URL is from allowed domain list to prevent SSRF in emails."""
        allowed = info.data.get("allowed_app_url_domains", ["localhost", "127.0.0.1"])
        hostname = urlparse(v).hostname or ""

        if not any(hostname == domain or hostname.endswith(f".{domain}") for domain in allowed):
            raise ValueError(
                f"APP_URL domain '{hostname}' not in allowed list. "
                f"Add it to ALLOWED_APP_URL_DOMAINS or use: {allowed}"
            )
        return v.rstrip("/")

    @property
    def is_testing(self) -> bool:
        return self.app_env == "testing"


@lru_cache
def get_settings() -> Settings:
    return Settings()
