"""Shared test fixtures.

The environment is seeded before anything from ``backstage`` is imported,
because settings are read at import time.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("SMTP_HOST", "")
os.environ.setdefault("SMTP_FROM_EMAIL", "")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from backstage.core.database import Base, get_db
from backstage.main import app
from backstage.modules.auth import models  # noqa: F401  registers the users table
from backstage.modules.notification.channels import ChannelDeliveryResult
from backstage.modules.notification.service import OTPNotifier, get_otp_notifier


class RecordingNotifier(OTPNotifier):
    """Notifier that keeps every passcode it was asked to deliver."""

    def __init__(self, succeed: bool = True):
        self.succeed = succeed
        self.sent: list[tuple[str, str]] = []

    async def send_password_reset_otp(self, user, otp: str) -> ChannelDeliveryResult:
        self.sent.append((user.email, otp))
        return ChannelDeliveryResult(
            success=self.succeed,
            channel="test",
            recipient=user.email,
            error=None if self.succeed else "delivery failed",
        )

    def last_code(self, email: str) -> str:
        codes = [otp for recipient, otp in self.sent if recipient == email]
        assert codes, f"no passcode sent to {email}"
        return codes[-1]


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    """Session factory over a fresh SQLite file per test."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest_asyncio.fixture
async def client(session_maker, notifier):
    """HTTP client against the app, with test database and notifier."""

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_otp_notifier] = lambda: notifier

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
