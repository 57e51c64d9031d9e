"""Fixtures for API endpoint tests."""

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def app(
    fake_redis,
    mock_oauth_client,
    mock_credential_store,
    mock_gmail_client,
    mock_application_service,
):
    """Application with external clients and the database replaced by mocks."""
    from reapply.core.dependencies import get_credential_manager
    from reapply.main import app
    from reapply.services.application_service import get_application_service
    from reapply.services.credential_manager import CredentialManager
    from reapply.services.gmail_client import get_gmail_client

    app.dependency_overrides[get_credential_manager] = lambda: CredentialManager(
        mock_oauth_client, credential_store=mock_credential_store
    )
    app.dependency_overrides[get_gmail_client] = lambda: mock_gmail_client
    app.dependency_overrides[get_application_service] = (
        lambda: mock_application_service
    )
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """Anonymous test client."""
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def signed_in_client(client, fake_redis, session_context):
    """Test client carrying the session cookie of a signed-in user."""
    fake_redis.data[f"session:{session_context.session_id}"] = (
        session_context.model_dump_json()
    )
    client.cookies.set("reapply_session", session_context.session_id)
    return client
