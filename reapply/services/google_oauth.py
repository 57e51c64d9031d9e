"""Google OAuth 2.0 client: authorization URL, code exchange and identity."""

import asyncio
import logging
import random
from urllib.parse import urlencode

import httpx

from reapply.core.config import settings
from reapply.core.exceptions import AuthorizationError

logger = logging.getLogger(__name__)

IDENTITY_SCOPES = ("openid", "email", "profile")


class GoogleOAuthClient:
    """Talks to Google's authorization, token and userinfo endpoints."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        max_retries: int = 2,
        base_delay: float = 1.0,
    ):
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.http_timeout_seconds),
        )
        self.max_retries = max_retries
        self.base_delay = base_delay

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def build_authorization_url(self, state: str, redirect_uri: str) -> str:
        """Authorization-code URL requesting offline access and send-only mail scope.

        ``prompt=consent`` makes Google issue a refresh token every time.
        """
        params = {
            "response_type": "code",
            "client_id": settings.google_client_id,
            "redirect_uri": redirect_uri,
            "state": state,
            "access_type": "offline",
            "prompt": "consent",
            "include_granted_scopes": "true",
            "scope": " ".join((*IDENTITY_SCOPES, settings.mail_scope)),
        }
        return f"{settings.google_auth_url}?{urlencode(params)}"

    async def exchange_code(self, code: str, redirect_uri: str) -> dict:
        """Exchange authorization code for tokens."""
        data = {
            "grant_type": "authorization_code",
            "client_id": settings.google_client_id,
            "client_secret": settings.google_client_secret,
            "code": code,
            "redirect_uri": redirect_uri,
        }

        for attempt in range(self.max_retries + 1):
            if attempt > 0:
                delay = self.base_delay * (2 ** (attempt - 1)) + random.uniform(0, 0.5)
                logger.info(
                    f"Token exchange retry {attempt}/{self.max_retries} after {delay:.2f}s"
                )
                await asyncio.sleep(delay)

            try:
                response = await self.client.post(
                    settings.google_token_url,
                    data=data,
                    headers={"Accept": "application/json"},
                )
            except httpx.RequestError as e:
                logger.warning(f"Network error during token exchange: {e}")
                continue

            if response.status_code >= 500:
                logger.warning(f"Token endpoint returned {response.status_code}")
                continue

            if not response.is_success:
                logger.error(
                    f"Token exchange failed: {response.status_code} {response.text[:300]}"
                )
                raise AuthorizationError(_describe_error(response, "Token exchange failed"))

            token_data = response.json()
            if not token_data.get("access_token"):
                raise AuthorizationError("Token exchange returned no access token")
            return token_data

        raise AuthorizationError("Token exchange failed after all retry attempts")

    async def get_user_info(self, access_token: str) -> dict:
        """Fetch the identity payload for the signed-in user."""
        try:
            response = await self.client.get(
                settings.google_userinfo_url,
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.RequestError as e:
            logger.error(f"Network error fetching user info: {e}")
            raise AuthorizationError("Could not reach the identity provider")

        if not response.is_success:
            logger.error(f"User info request failed: {response.status_code}")
            raise AuthorizationError(_describe_error(response, "Failed to load identity"))
        return response.json()

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()


def _describe_error(response: httpx.Response, default: str) -> str:
    try:
        data = response.json()
    except ValueError:
        return default
    if isinstance(data, dict):
        description = data.get("error_description") or data.get("error")
        if isinstance(description, str) and description:
            return f"{default}: {description}"
    return default


async def get_oauth_client():
    """FastAPI dependency for Google OAuth client with proper cleanup."""
    client = GoogleOAuthClient()
    try:
        yield client
    finally:
        await client.close()
