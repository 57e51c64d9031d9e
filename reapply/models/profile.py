"""User profile model holding the mail credential."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from reapply.core.storage import Base, utc_now_naive
from reapply.schemas.auth import OAuthCredential


class Profile(Base):
    """Model for storing user profile and mail credential."""

    __tablename__ = "profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True, index=True
    )
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    mail_connected: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    mail_access_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    mail_refresh_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    mail_token_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    mail_token_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now_naive, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now_naive, onupdate=utc_now_naive, nullable=False
    )

    def credential(self) -> OAuthCredential | None:
        """Return the stored credential, or None if it was never set or cleared."""
        if not self.mail_access_token or self.mail_token_expires_at is None:
            return None
        return OAuthCredential(
            access_token=self.mail_access_token,
            refresh_token=self.mail_refresh_token,
            expires_at=self.mail_token_expires_at,
            token_type=self.mail_token_type or "Bearer",
        )
