"""Database connection and storage utilities."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from reapply.core.config import settings
from reapply.core.exceptions import CredentialConflictError
from reapply.schemas.auth import OAuthCredential, as_utc

if TYPE_CHECKING:
    from reapply.models.profile import Profile

logger = logging.getLogger(__name__)

engine: AsyncEngine = create_async_engine(
    str(settings.database_url),
    echo=False,
    pool_pre_ping=True,
)

async_session = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

_UNCHECKED = object()


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def to_db_datetime(value: datetime | None) -> datetime | None:
    """Convert to the timezone-naive UTC form used for DB storage."""
    if value is None:
        return None
    return as_utc(value).replace(tzinfo=None)


def utc_now_naive() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


async def init_models() -> None:
    """Initialize database models."""
    import reapply.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


class CredentialStorage:
    """Per-user mail credential stored on the profile record."""

    @staticmethod
    async def get_profile(user_id: str) -> Profile | None:
        """Get the profile for a user."""
        from reapply.models.profile import Profile

        async with async_session() as session:
            result = await session.execute(
                select(Profile).where(Profile.user_id == user_id)
            )
            return result.scalar_one_or_none()

    @staticmethod
    async def get_credential(user_id: str) -> OAuthCredential | None:
        """Get the stored credential, if the profile holds one."""
        profile = await CredentialStorage.get_profile(user_id)
        if profile is None:
            return None
        return profile.credential()

    @staticmethod
    async def save(
        user_id: str,
        credential: OAuthCredential,
        *,
        email: str,
        full_name: str | None = None,
        avatar_url: str | None = None,
        expected_expires_at: datetime | None | object = _UNCHECKED,
    ) -> Profile:
        """Save a credential, replacing any existing one.

        When ``expected_expires_at`` is given, the write only succeeds if the
        stored expiry still equals it (``None`` meaning no stored credential).
        """
        from reapply.models.profile import Profile

        values = {
            "email": email,
            "mail_access_token": credential.access_token,
            "mail_refresh_token": credential.refresh_token,
            "mail_token_type": credential.token_type,
            "mail_token_expires_at": to_db_datetime(credential.expires_at),
            "mail_connected": True,
        }
        if full_name is not None:
            values["full_name"] = full_name
        if avatar_url is not None:
            values["avatar_url"] = avatar_url

        conditional = expected_expires_at is not _UNCHECKED

        async with async_session() as session:
            result = await session.execute(
                select(Profile).where(Profile.user_id == user_id)
            )
            profile = result.scalar_one_or_none()

            if profile is None:
                if conditional and expected_expires_at is not None:
                    raise CredentialConflictError(user_id)
                profile = Profile(user_id=user_id, **values)
                session.add(profile)
            else:
                stmt = update(Profile).where(Profile.user_id == user_id)
                if conditional:
                    if expected_expires_at is None:
                        stmt = stmt.where(Profile.mail_token_expires_at.is_(None))
                    else:
                        stmt = stmt.where(
                            Profile.mail_token_expires_at
                            == to_db_datetime(expected_expires_at)
                        )
                stmt = stmt.values(updated_at=utc_now_naive(), **values)
                result = await session.execute(stmt)
                if result.rowcount == 0:
                    await session.rollback()
                    raise CredentialConflictError(user_id)

            await session.commit()
            await session.refresh(profile)
            logger.info(f"Stored mail credential for user {user_id}")
            return profile

    @staticmethod
    async def clear(user_id: str) -> None:
        """Clear the stored credential and the connected flag."""
        from reapply.models.profile import Profile

        async with async_session() as session:
            await session.execute(
                update(Profile)
                .where(Profile.user_id == user_id)
                .values(
                    mail_access_token=None,
                    mail_refresh_token=None,
                    mail_token_type=None,
                    mail_token_expires_at=None,
                    mail_connected=False,
                    updated_at=utc_now_naive(),
                )
            )
            await session.commit()
        logger.info(f"Cleared mail credential for user {user_id}")
