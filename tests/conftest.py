"""
Test configuration and fixtures for the Car Dealership API.

Tests run against a throwaway sqlite file. The OTP sweeper is disabled so
records only disappear when a test asks for it, and the rate limiter uses
its in-memory store with the TestClient host whitelisted.
"""

import asyncio
import os
import tempfile
from datetime import datetime, timedelta
from typing import Generator
from uuid import uuid4

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from fastapi.testclient import TestClient

load_dotenv()

test_db_path = tempfile.mktemp(suffix=".db")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{test_db_path}"
os.environ["OTP_SWEEPER_ENABLED"] = "false"
os.environ["FORCE_IN_MEMORY_RATE_LIMITER"] = "true"
os.environ["WHITELIST_IPS"] = '["testclient"]'
os.environ.pop("SEED_ADMIN_EMAIL", None)
os.environ.pop("SEED_ADMIN_PASSWORD", None)

from dealership.features.auth.models.user import UserRole  # noqa: E402
from dealership.features.auth.schemas.auth import RegisterRequest  # noqa: E402
from dealership.features.auth.services.auth_service import AuthService  # noqa: E402
from dealership.platform.db.session import SessionLocal, init_db  # noqa: E402

DEFAULT_PASSWORD = "CustomerPass1"


class FakeClock:
    """Callable clock for OtpService that only moves when told to."""

    def __init__(self, start: datetime = None):
        self.now = start or datetime.utcnow().replace(microsecond=0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingSink:
    """Delivery sink that keeps issued codes instead of logging them."""

    def __init__(self):
        self.sent = []

    async def deliver(self, email, purpose, code, expires_at):
        self.sent.append({"email": email, "purpose": purpose, "code": code, "expires_at": expires_at})

    def last_code(self) -> str:
        return self.sent[-1]["code"]


def unique_email(prefix: str = "user") -> str:
    return f"{prefix}-{uuid4().hex[:10]}@example.com"


@pytest.fixture(scope="session")
def test_app():
    """Create FastAPI test application."""
    from dealership.main import app

    return app


@pytest.fixture(scope="function")
def client(test_app) -> Generator[TestClient, None, None]:
    """
    Create a test client for making HTTP requests.
    Entering the client runs the lifespan, which creates the tables.
    """
    with TestClient(test_app) as test_client:
        yield test_client


@pytest_asyncio.fixture
async def db():
    await init_db()
    async with SessionLocal() as session:
        yield session


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def otp_outbox(mocker):
    """Codes issued through the HTTP API, keyed by (email, purpose)."""
    sent = {}

    async def capture(email, purpose, code, expires_at):
        sent[(email, purpose)] = code

    mocker.patch(
        "dealership.features.otp.services.delivery.LogDeliverySink.deliver",
        side_effect=capture,
    )
    return sent


def create_account(email: str, password: str = DEFAULT_PASSWORD, role: UserRole = UserRole.CUSTOMER):
    """Insert an account directly and return it with a ready Authorization header."""

    async def _create():
        async with SessionLocal() as session:
            auth_service = AuthService(session)
            details = RegisterRequest(
                email=email, password=password, first_name="Test", last_name="User"
            )
            user = await auth_service.create_account(details, role=role)
            token = auth_service.issue_session_token(user)
            return user, {"Authorization": f"Bearer {token}"}

    return asyncio.run(_create())


@pytest.fixture
def admin(client):
    return create_account(unique_email("admin"), password="AdminPass123", role=UserRole.ADMIN)


@pytest.fixture
def customer(client):
    return create_account(unique_email("customer"))
