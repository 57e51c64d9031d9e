"""OAuth credential lifecycle for the mail provider.

Acquisition is a two-phase protocol: ``initiate`` produces the provider
redirect and persists the resumption context under a one-time ``state``;
``complete_callback`` is a separate entry point invoked when the provider
redirects back. Nothing kept in memory is assumed to survive in between.

Validity is checked lazily at the point of use. There is no proactive
refresh: a token that expires mid-flight makes the send fail and the next
attempt starts a fresh authorization.
"""

import logging
import secrets
from datetime import datetime, timedelta
from urllib.parse import urlencode

from sqlalchemy.exc import SQLAlchemyError

from reapply.core.config import settings
from reapply.core.exceptions import (
    AuthorizationError,
    CredentialConflictError,
    CredentialUnavailable,
)
from reapply.core.redis_client import OAuthStateStore, SessionStore
from reapply.core.storage import CredentialStorage
from reapply.schemas.auth import (
    CallbackParams,
    CallbackResult,
    FlowPurpose,
    MailConnectionStatus,
    OAuthCredential,
    OAuthStateRecord,
    SessionContext,
    utc_now,
)
from reapply.services.google_oauth import GoogleOAuthClient

logger = logging.getLogger(__name__)

PURPOSE_PARAM = "purpose"

REDIRECT_AFTER = {
    FlowPurpose.SIGN_IN: "/",
    FlowPurpose.CONNECT_MAIL: "/settings",
}


def redirect_uri_for(purpose: FlowPurpose) -> str:
    """Callback URI carrying the flow purpose in its query string."""
    base = settings.google_redirect_uri
    separator = "&" if "?" in base else "?"
    return f"{base}{separator}{urlencode({PURPOSE_PARAM: purpose.value})}"


class CredentialManager:
    """Produces a usable mail credential or initiates its acquisition."""

    def __init__(
        self,
        oauth_client: GoogleOAuthClient,
        credential_store=CredentialStorage,
        state_store=OAuthStateStore,
        session_store=SessionStore,
    ):
        self.oauth_client = oauth_client
        self.credential_store = credential_store
        self.state_store = state_store
        self.session_store = session_store

    def session_credential(
        self, ctx: SessionContext, now: datetime | None = None
    ) -> OAuthCredential | None:
        """Return the session-attached token if it has not expired."""
        credential = ctx.provider_credential()
        if credential is None or not credential.is_usable(now):
            return None
        return credential

    async def get_valid_credential(
        self, ctx: SessionContext, resume_send: bool = False
    ) -> OAuthCredential:
        """Return a usable credential, or start authorization.

        The session-attached token is checked first and returned without
        touching the store or the network. Otherwise a connect-mail flow is
        initiated and ``CredentialUnavailable`` carries the redirect URL.
        """
        credential = self.session_credential(ctx)
        if credential is not None:
            return credential

        logger.info(f"No usable mail token for user {ctx.user_id}, starting authorization")
        url = await self.initiate(
            FlowPurpose.CONNECT_MAIL, ctx=ctx, resume_send=resume_send
        )
        raise CredentialUnavailable(url)

    async def initiate(
        self,
        purpose: FlowPurpose,
        ctx: SessionContext | None = None,
        resume_send: bool = False,
    ) -> str:
        """Start an authorization-code flow and return the provider URL."""
        state = secrets.token_urlsafe(24)
        redirect_uri = redirect_uri_for(purpose)
        record = OAuthStateRecord(
            purpose=purpose,
            redirect_uri=redirect_uri,
            session_id=ctx.session_id if ctx else None,
            resume_send=resume_send,
        )
        await self.state_store.set(state, record)
        logger.info(f"Initiated {purpose.value} authorization flow")
        return self.oauth_client.build_authorization_url(state, redirect_uri)

    async def complete_callback(
        self, params: CallbackParams, now: datetime | None = None
    ) -> CallbackResult:
        """Finish a flow: store the new credential and refresh the session."""
        if params.error:
            logger.warning(f"Provider returned error: {params.error}")
            raise AuthorizationError(params.error_description or "Authentication failed")

        if not params.state:
            raise AuthorizationError("Missing OAuth state")
        record = await self.state_store.pop(params.state)
        if record is None:
            logger.warning("Unknown or expired OAuth state on callback")
            raise AuthorizationError("Invalid or expired OAuth state")
        if params.purpose is not None and params.purpose is not record.purpose:
            raise AuthorizationError("OAuth flow purpose mismatch")
        if not params.code:
            raise AuthorizationError("Missing authorization code")

        token_data = await self.oauth_client.exchange_code(
            params.code, record.redirect_uri
        )
        identity = await self.oauth_client.get_user_info(token_data["access_token"])
        user_id = identity.get("sub")
        email = identity.get("email")
        if not user_id or not email:
            raise AuthorizationError("No Google identity data found")

        existing = None
        if record.session_id:
            existing = await self.session_store.get(record.session_id)
        if existing is not None and existing.user_id != user_id:
            if record.purpose is FlowPurpose.CONNECT_MAIL:
                raise AuthorizationError(
                    "The connected Google account does not match the signed-in user"
                )
            # Signing in as another account starts a fresh session.
            await self.session_store.delete(existing.session_id)
            existing = None

        now = now or utc_now()
        credential = OAuthCredential(
            access_token=token_data["access_token"],
            refresh_token=token_data.get("refresh_token"),
            expires_at=now + timedelta(seconds=settings.credential_ttl_seconds),
            token_type="Bearer",
        )

        try:
            prior = await self.credential_store.get_credential(user_id)
            await self.credential_store.save(
                user_id,
                credential,
                email=email,
                full_name=identity.get("name"),
                avatar_url=identity.get("picture"),
                expected_expires_at=prior.expires_at if prior else None,
            )
        except CredentialConflictError as e:
            logger.warning(f"Credential update conflict: {e}")
            raise AuthorizationError(
                "Mail credentials were updated in another session, please try again"
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to store credential for user {user_id}: {e}")
            raise AuthorizationError("Failed to update profile with tokens")

        session_fields = {
            "user_id": user_id,
            "email": email,
            "full_name": identity.get("name"),
            "provider_token": credential.access_token,
            "provider_token_expires_at": credential.expires_at,
        }
        if existing is not None:
            session = existing.model_copy(update=session_fields)
        else:
            session = SessionContext(
                session_id=secrets.token_urlsafe(32),
                **session_fields,
            )
        await self.session_store.save(session)

        logger.info(f"Completed {record.purpose.value} flow for user {user_id}")
        return CallbackResult(
            purpose=record.purpose,
            session=session,
            redirect_to=REDIRECT_AFTER[record.purpose],
            resume_send=record.resume_send,
        )

    async def disconnect(self, ctx: SessionContext) -> SessionContext:
        """Clear the stored credential and the session token. Idempotent."""
        await self.credential_store.clear(ctx.user_id)
        session = ctx.model_copy(
            update={"provider_token": None, "provider_token_expires_at": None}
        )
        await self.session_store.save(session)
        return session

    async def connection_status(self, ctx: SessionContext) -> MailConnectionStatus:
        """Connected only if flagged and the stored token has not expired."""
        profile = await self.credential_store.get_profile(ctx.user_id)
        if profile is None:
            return MailConnectionStatus(connected=False, email=ctx.email)

        credential = profile.credential()
        return MailConnectionStatus(
            connected=bool(
                profile.mail_connected
                and credential is not None
                and credential.is_usable()
            ),
            email=profile.email,
            expires_at=credential.expires_at if credential else None,
        )

    async def sign_out(self, ctx: SessionContext) -> None:
        await self.session_store.delete(ctx.session_id)
        logger.info(f"User {ctx.user_id} signed out")
