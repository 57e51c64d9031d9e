"""Pytest configuration and fixtures."""

import os
import sys
from datetime import UTC, date, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

# Add the project root to the Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Set test environment variables before importing reapply modules
os.environ.setdefault("GOOGLE_CLIENT_ID", "test_client_id")
os.environ.setdefault("GOOGLE_CLIENT_SECRET", "test_client_secret")
os.environ.setdefault("GOOGLE_REDIRECT_URI", "http://localhost:8000/auth/callback")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_reapply.db"
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("COOKIE_SECURE", "false")


class FakeRedis:
    """In-memory stand-in for the few redis.asyncio calls the stores make."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def get(self, key):
        return self.data.get(key)

    async def setex(self, key, ttl, value):
        self.data[key] = value
        self.ttls[key] = ttl
        return True

    async def getdel(self, key):
        self.ttls.pop(key, None)
        return self.data.pop(key, None)

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    async def close(self):
        pass


@pytest.fixture
def fake_redis():
    """Install an in-memory Redis as the global client."""
    from reapply.core import redis_client

    fake = FakeRedis()
    redis_client._redis_client = fake
    yield fake
    redis_client._redis_client = None


@pytest_asyncio.fixture
async def db():
    """Create all tables on the SQLite test database and drop them afterwards."""
    from reapply.core.storage import Base, engine, init_models

    await init_models()
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def now():
    """Fixed reference instant."""
    return datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def job_details_data():
    """Valid job details as submitted by the form."""
    return {
        "company": "Acme",
        "position": "Engineer",
        "work_mode": "Remote",
        "location": "Berlin",
        "status": "Applied",
        "applied_date": "2026-03-01",
        "description": "Backend services in Python",
        "recruiter_email": "recruiter@acme.example",
    }


@pytest.fixture
def job_details(job_details_data):
    from reapply.schemas.application import JobDetails

    return JobDetails.model_validate(job_details_data)


@pytest.fixture
def session_context():
    """Signed-in session without a mail token."""
    from reapply.schemas.auth import SessionContext

    return SessionContext(
        session_id="session-123",
        user_id="google-user-1",
        email="me@gmail.example",
        full_name="Test User",
    )


@pytest.fixture
def connected_session(session_context):
    """Signed-in session carrying a mail token valid for another hour."""
    return session_context.model_copy(
        update={
            "provider_token": "session-access-token",
            "provider_token_expires_at": datetime.now(UTC) + timedelta(hours=1),
        }
    )


@pytest.fixture
def mock_oauth_client():
    """Mock Google OAuth client for testing."""
    client = MagicMock()
    client.build_authorization_url = MagicMock(
        side_effect=lambda state, redirect_uri: (
            f"https://accounts.google.example/auth?state={state}"
        )
    )
    client.exchange_code = AsyncMock(
        return_value={
            "access_token": "new-access-token",
            "refresh_token": "new-refresh-token",
            "expires_in": 3599,
        }
    )
    client.get_user_info = AsyncMock(
        return_value={
            "sub": "google-user-1",
            "email": "me@gmail.example",
            "name": "Test User",
            "picture": "https://example.com/avatar.png",
        }
    )
    client.close = AsyncMock()
    return client


@pytest.fixture
def mock_credential_store():
    """Mock credential store for testing."""
    store = MagicMock()
    store.get_profile = AsyncMock(return_value=None)
    store.get_credential = AsyncMock(return_value=None)
    store.save = AsyncMock()
    store.clear = AsyncMock()
    return store


@pytest.fixture
def mock_gmail_client():
    """Mock Gmail client for testing."""
    client = MagicMock()
    client.send_message = AsyncMock(
        return_value={"id": "msg-1", "threadId": "thread-1"}
    )
    client.close = AsyncMock()
    return client


@pytest.fixture
def mock_application_service():
    """Mock application service for testing."""
    from reapply.models.application import JobApplication

    service = MagicMock()
    service.create_application = AsyncMock(
        return_value=JobApplication(
            id=1,
            user_id="google-user-1",
            company="Acme",
            position="Engineer",
            work_mode="Remote",
            location="Berlin",
            status="Applied",
            applied_date=date(2026, 3, 1),
            recruiter_email="recruiter@acme.example",
            email_thread_id="thread-1",
            follow_up_count=0,
        )
    )
    return service
