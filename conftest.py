import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

# Settings are read at import time by libs.db.config, so the test environment
# must be in place before any project module is imported.
TEST_ENCRYPTION_KEY = "test-khairat-field-encryption-key"
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["KHAIRAT_ENCRYPTION_KEY"] = TEST_ENCRYPTION_KEY
for _var in ("WHATSAPP_API_URL", "WHATSAPP_ACCESS_TOKEN", "EMAIL_API_URL", "EMAIL_API_KEY"):
    os.environ.pop(_var, None)

from libs.common.config import get_settings  # noqa: E402

get_settings.cache_clear()

from libs.auth.dependencies import get_current_user  # noqa: E402
from libs.auth.models import AuthUser  # noqa: E402
from libs.common.field_crypto import FieldCipher  # noqa: E402
from libs.db.base import Base  # noqa: E402
from libs.db.config import build_engine  # noqa: E402
from libs.db.session import get_async_db  # noqa: E402
from services.khairat_service import models as _khairat_models  # noqa: E402,F401
from services.khairat_service.app.main import app  # noqa: E402
from services.khairat_service.services.notifications import (  # noqa: E402
    NotificationDispatcher,
)
from tests.factories import FakeChannel  # noqa: E402


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine():
    """
    Fresh in-memory SQLite database per test.
    SAVEPOINTs and foreign keys are enabled by build_engine.
    """
    engine = build_engine("sqlite+aiosqlite://")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Crypto & notifications
# ---------------------------------------------------------------------------


@pytest.fixture
def cipher() -> FieldCipher:
    return FieldCipher.from_secret(TEST_ENCRYPTION_KEY)


@pytest.fixture
def other_cipher() -> FieldCipher:
    """A cipher with a different key, for ciphertexts we must not be able to read."""
    return FieldCipher.from_secret("some-other-deployment-key")


@pytest.fixture
def whatsapp_channel() -> FakeChannel:
    return FakeChannel("whatsapp")


@pytest.fixture
def email_channel() -> FakeChannel:
    return FakeChannel("email", needs_email=True)


@pytest.fixture
def notifier(whatsapp_channel, email_channel) -> NotificationDispatcher:
    return NotificationDispatcher([whatsapp_channel, email_channel])


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(db_session, cipher, notifier) -> AsyncGenerator[AsyncClient, None]:
    """
    Yield an AsyncClient for the khairat app with the DB dependency overridden.
    ASGITransport does not run the lifespan, so app state is set here.
    """
    app.state.field_cipher = cipher
    app.state.notifier = notifier
    app.dependency_overrides[get_async_db] = lambda: db_session

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    await notifier.drain()
    app.dependency_overrides.clear()


@pytest.fixture
def login_as():
    """
    Override the authenticated user for the current test.

    Usage:
        login_as("bendahari")
    """

    def _login(role: str, email: str = "staff@masjid.test") -> AuthUser:
        user = AuthUser(user_id=f"user-{role}", email=email, role=role)

        async def _current_user():
            return user

        app.dependency_overrides[get_current_user] = _current_user
        return user

    return _login
