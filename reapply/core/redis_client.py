"""Redis client for short-lived state with TTL."""

import logging

from redis.asyncio import Redis

from reapply.core.config import settings
from reapply.schemas.auth import OAuthStateRecord, SessionContext
from reapply.schemas.pipeline import PipelineState

logger = logging.getLogger(__name__)

# Async Redis client
_redis_client: Redis | None = None


async def get_redis() -> Redis:
    """Get or create async Redis client."""
    global _redis_client
    if _redis_client is None:
        _redis_client = Redis.from_url(
            settings.redis_url,
            decode_responses=True,
        )
    return _redis_client


async def close_redis() -> None:
    """Close Redis connection."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.close()
        _redis_client = None


class OAuthStateStore:
    """OAuth state storage using Redis with automatic TTL expiration.

    Each session has at most one pending flow: starting a new one
    invalidates the previous state.
    """

    PREFIX = "oauth_state:"
    SESSION_PREFIX = "oauth_pending:"

    @classmethod
    async def set(cls, state: str, record: OAuthStateRecord) -> None:
        """Store OAuth state with TTL."""
        redis = await get_redis()
        ttl = settings.oauth_state_ttl_seconds

        if record.session_id:
            pending_key = f"{cls.SESSION_PREFIX}{record.session_id}"
            previous = await redis.get(pending_key)
            if previous and previous != state:
                await redis.delete(f"{cls.PREFIX}{previous}")
                logger.info("Superseded pending OAuth flow for session")
            await redis.setex(pending_key, ttl, state)

        await redis.setex(f"{cls.PREFIX}{state}", ttl, record.model_dump_json())
        logger.debug(f"Stored OAuth state for purpose {record.purpose.value} (TTL: {ttl}s)")

    @classmethod
    async def get(cls, state: str) -> OAuthStateRecord | None:
        """Get the record stored for an OAuth state."""
        redis = await get_redis()
        raw = await redis.get(f"{cls.PREFIX}{state}")
        if raw is None:
            return None
        return OAuthStateRecord.model_validate_json(raw)

    @classmethod
    async def pop(cls, state: str) -> OAuthStateRecord | None:
        """Get and delete an OAuth state so it can only be used once."""
        redis = await get_redis()
        raw = await redis.getdel(f"{cls.PREFIX}{state}")
        if raw is None:
            return None
        record = OAuthStateRecord.model_validate_json(raw)
        if record.session_id:
            await redis.delete(f"{cls.SESSION_PREFIX}{record.session_id}")
        return record


class SessionStore:
    """Server-side sessions keyed by the session cookie."""

    PREFIX = "session:"

    @classmethod
    async def save(cls, session: SessionContext) -> None:
        redis = await get_redis()
        await redis.setex(
            f"{cls.PREFIX}{session.session_id}",
            settings.session_ttl_seconds,
            session.model_dump_json(),
        )

    @classmethod
    async def get(cls, session_id: str) -> SessionContext | None:
        redis = await get_redis()
        raw = await redis.get(f"{cls.PREFIX}{session_id}")
        if raw is None:
            return None
        return SessionContext.model_validate_json(raw)

    @classmethod
    async def delete(cls, session_id: str) -> None:
        redis = await get_redis()
        await redis.delete(f"{cls.PREFIX}{session_id}")


class PipelineStateStore:
    """In-flight submission pipeline state, one per session."""

    PREFIX = "pipeline:"

    @classmethod
    async def save(cls, session_id: str, state: PipelineState) -> None:
        redis = await get_redis()
        await redis.setex(
            f"{cls.PREFIX}{session_id}",
            settings.pipeline_ttl_seconds,
            state.model_dump_json(),
        )

    @classmethod
    async def get(cls, session_id: str) -> PipelineState | None:
        redis = await get_redis()
        raw = await redis.get(f"{cls.PREFIX}{session_id}")
        if raw is None:
            return None
        return PipelineState.model_validate_json(raw)

    @classmethod
    async def delete(cls, session_id: str) -> None:
        redis = await get_redis()
        await redis.delete(f"{cls.PREFIX}{session_id}")
