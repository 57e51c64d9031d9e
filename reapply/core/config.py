"""Application configuration management."""

from pydantic import AnyUrl, ConfigDict, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Google OAuth
    google_client_id: str
    google_client_secret: str
    google_redirect_uri: str
    google_auth_url: str = "https://accounts.google.com/o/oauth2/v2/auth"
    google_token_url: str = "https://oauth2.googleapis.com/token"
    google_userinfo_url: str = "https://openidconnect.googleapis.com/v1/userinfo"

    # Gmail
    gmail_send_url: str = (
        "https://gmail.googleapis.com/gmail/v1/users/me/messages/send"
    )
    mail_scope: str = "https://www.googleapis.com/auth/gmail.send"
    http_timeout_seconds: float = Field(default=30.0, gt=0)

    # Database
    database_url: AnyUrl
    redis_url: str = "redis://localhost:6379/0"

    # Security
    cookie_secure: bool = Field(
        default=True,
        description="Set to False for local HTTP development",
    )
    session_ttl_seconds: int = Field(default=86400 * 7, ge=60)

    # Credential lifecycle
    credential_ttl_seconds: int = Field(default=3600, ge=60)
    oauth_state_ttl_seconds: int = Field(default=600, ge=30)
    auth_failure_redirect_delay: int = Field(default=2, ge=0, le=30)

    # Submission pipeline
    pipeline_ttl_seconds: int = Field(default=86400, ge=60)

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
