"""Gmail API client used as the mail delivery gateway."""

import base64
import logging
from email.message import EmailMessage

import httpx

from reapply.core.config import settings
from reapply.core.exceptions import DeliveryError
from reapply.schemas.application import EmailDraft
from reapply.schemas.auth import OAuthCredential

logger = logging.getLogger(__name__)


def build_mime_message(sender: str, recipient: str, draft: EmailDraft) -> bytes:
    """Build a minimal plain-text RFC 822 message."""
    message = EmailMessage()
    message["From"] = sender
    message["To"] = recipient
    message["Subject"] = draft.subject
    message.set_content(draft.body, subtype="plain", charset="utf-8")
    return message.as_bytes()


def encode_raw_message(data: bytes) -> str:
    """Encode message bytes as url-safe base64 without padding."""
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def build_raw_message(sender: str, recipient: str, draft: EmailDraft) -> str:
    """Build the ``raw`` payload expected by the send endpoint."""
    return encode_raw_message(build_mime_message(sender, recipient, draft))


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:500] or "Failed to send email"
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    return "Failed to send email"


class GmailClient:
    """Sends messages through the Gmail API on the user's behalf."""

    def __init__(self, client: httpx.AsyncClient | None = None):
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.http_timeout_seconds),
        )
        self.send_url = settings.gmail_send_url

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def send_message(self, credential: OAuthCredential, raw: str) -> dict:
        """Send an encoded message. Not retried: a send is not idempotent.

        Returns the gateway response (``id`` and ``threadId``).
        """
        if not credential.is_usable():
            raise DeliveryError(401, "Mail credential expired, please reconnect")

        try:
            response = await self.client.post(
                self.send_url,
                json={"raw": raw},
                headers={
                    "Authorization": credential.authorization_header,
                    "Content-Type": "application/json",
                },
            )
        except httpx.RequestError as e:
            logger.error(f"Network error sending email: {e}")
            raise DeliveryError(502, f"Network error: {e}")

        if not response.is_success:
            message = _error_message(response)
            logger.error(f"Gmail API error: {response.status_code} - {message}")
            raise DeliveryError(response.status_code, message)

        if not response.content:
            return {}
        return response.json()

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()


async def get_gmail_client():
    """FastAPI dependency for Gmail client with proper cleanup."""
    client = GmailClient()
    try:
        yield client
    finally:
        await client.close()
