"""Pytest configuration for global fixtures and logging setup."""
from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Callable, Iterable

import pytest
from fastapi.testclient import TestClient

_TMP_DIR = Path(tempfile.mkdtemp(prefix="yatri-tests-"))

os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR / 'test_portal.db'}"
os.environ["LOG_DIR"] = str(_TMP_DIR / "logs")
os.environ["ADMIN_ACCOUNTS"] = '{"pratham": "admin-pass-1", "ketal": "admin-pass-2"}'
os.environ["PASSWORD_SALT_ROUNDS"] = "4"
# Never talk to a real relay from the test suite.
os.environ["EMAIL_USER"] = ""
os.environ["EMAIL_PASS"] = ""

from yatri.logging_config import configure_logging

configure_logging()

from yatri.database import Base, SessionLocal, engine
from yatri.main import app
from yatri.models.database_models import Staff
from yatri.models.notifications import MessageContent, Recipient
from yatri.services.mail_transport import RelayRejected
from yatri.services.notification_service import NotificationService, get_notifier


class FakeTransport:
    """In-memory stand-in for ``MailTransport``."""

    def __init__(
        self,
        available: bool = True,
        fail_for: Iterable[str] = (),
        account: str = "portal@example.com",
    ) -> None:
        self.available = available
        self.account = account
        self.verified = available
        self.error = None if available else "Email credentials not configured"
        self.fail_for = set(fail_for)
        self.sent: list[tuple[Recipient, MessageContent]] = []

    async def send(self, recipient: Recipient, content: MessageContent) -> str:
        if recipient.address in self.fail_for:
            raise RelayRejected(f"Relay rejected message: 550 mailbox unavailable <{recipient.address}>")
        self.sent.append((recipient, content))
        return f"<{len(self.sent)}@test.local>"

    def status(self) -> dict:
        return {
            "configured": self.available,
            "available": self.available,
            "verified": self.verified,
            "error": self.error,
        }


@pytest.fixture(scope="session", autouse=True)
def database_schema():
    """Create tables once for the whole run."""

    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(autouse=True)
def clean_staff_table():
    yield
    db = SessionLocal()
    try:
        db.query(Staff).delete()
        db.commit()
    finally:
        db.close()


@pytest.fixture(scope="session")
def test_client() -> TestClient:
    """Provide a FastAPI test client (lifespan not started, so no real transport)."""

    return TestClient(app)


@pytest.fixture
def make_transport() -> Callable[..., FakeTransport]:
    return FakeTransport


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def install_notifier() -> Callable[[FakeTransport], NotificationService]:
    """Route the API's notifier dependency to a service over the given transport."""

    def _install(transport: FakeTransport) -> NotificationService:
        service = NotificationService(transport, broadcast_workers=3)
        app.dependency_overrides[get_notifier] = lambda: service
        return service

    yield _install
    app.dependency_overrides.pop(get_notifier, None)


@pytest.fixture
def notifier(install_notifier, fake_transport: FakeTransport) -> NotificationService:
    return install_notifier(fake_transport)
