"""Tests for Gmail API client."""

import base64
import json
from datetime import UTC, datetime, timedelta
from email import message_from_bytes, policy

import httpx
import pytest

from reapply.core.exceptions import DeliveryError
from reapply.schemas.application import EmailDraft
from reapply.schemas.auth import OAuthCredential
from reapply.services.gmail_client import (
    GmailClient,
    build_mime_message,
    build_raw_message,
    encode_raw_message,
)


def _credential(minutes: int = 30) -> OAuthCredential:
    return OAuthCredential(
        access_token="gmail-token",
        expires_at=datetime.now(UTC) + timedelta(minutes=minutes),
    )


def _decode(raw: str) -> bytes:
    return base64.urlsafe_b64decode(raw + "=" * (-len(raw) % 4))


class TestMessageEncoding:
    """Tests for MIME building and encoding."""

    def test_mime_headers_and_body(self):
        draft = EmailDraft(subject="Application for Engineer at Acme", body="Hello\nWorld")

        message = message_from_bytes(
            build_mime_message("me@gmail.example", "hr@acme.example", draft),
            policy=policy.default,
        )

        assert message["From"] == "me@gmail.example"
        assert message["To"] == "hr@acme.example"
        assert message["Subject"] == "Application for Engineer at Acme"
        assert message.get_content_type() == "text/plain"
        assert "Hello" in message.get_content()

    def test_encoding_is_urlsafe_without_padding(self):
        raw = encode_raw_message(b"\xff\xfe\xfd subject?")
        assert "=" not in raw
        assert "+" not in raw
        assert "/" not in raw
        assert _decode(raw) == b"\xff\xfe\xfd subject?"

    def test_non_ascii_body(self):
        draft = EmailDraft(subject="Bewerbung", body="Grüße aus München")
        raw = build_raw_message("me@gmail.example", "hr@acme.example", draft)

        message = message_from_bytes(_decode(raw), policy=policy.default)

        assert message.get_content() == "Grüße aus München\n"


class TestSendMessage:
    """Tests for GmailClient.send_message."""

    @pytest.mark.asyncio
    async def test_send_success(self):
        """Test successful send returns message and thread ids."""
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["auth"] = request.headers["Authorization"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": "msg-1", "threadId": "thread-1"})

        async with GmailClient(
            httpx.AsyncClient(transport=httpx.MockTransport(handler))
        ) as client:
            result = await client.send_message(_credential(), "cmF3")

        assert result == {"id": "msg-1", "threadId": "thread-1"}
        assert captured["auth"] == "Bearer gmail-token"
        assert captured["body"] == {"raw": "cmF3"}

    @pytest.mark.asyncio
    async def test_gateway_error_message(self):
        """Test the gateway's error message is surfaced with its status."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                403,
                json={"error": {"code": 403, "message": "Insufficient Permission"}},
            )

        client = GmailClient(httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        with pytest.raises(DeliveryError) as exc_info:
            await client.send_message(_credential(), "cmF3")
        await client.close()

        assert exc_info.value.status_code == 403
        assert exc_info.value.detail == "Insufficient Permission"

    @pytest.mark.asyncio
    async def test_gateway_error_without_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500)

        client = GmailClient(httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        with pytest.raises(DeliveryError) as exc_info:
            await client.send_message(_credential(), "cmF3")
        await client.close()

        assert exc_info.value.status_code == 500
        assert exc_info.value.detail == "Failed to send email"

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused")

        client = GmailClient(httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        with pytest.raises(DeliveryError) as exc_info:
            await client.send_message(_credential(), "cmF3")
        await client.close()

        assert exc_info.value.status_code == 502
        assert "Network error" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_send_not_retried(self):
        """Test a failed send is attempted exactly once."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(503, json={"error": {"message": "Backend Error"}})

        client = GmailClient(httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        with pytest.raises(DeliveryError):
            await client.send_message(_credential(), "cmF3")
        await client.close()

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_expired_credential_not_sent(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json={})

        client = GmailClient(httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        with pytest.raises(DeliveryError) as exc_info:
            await client.send_message(_credential(minutes=-1), "cmF3")
        await client.close()

        assert exc_info.value.status_code == 401
        assert calls == []
