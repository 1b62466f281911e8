"""Pytest configuration and fixtures"""
import os

# Settings are read at import time; configure the test environment first
os.environ.setdefault("JWT_SECRET", "test-secret-do-not-use-in-production")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Callable, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from app.database import Base, get_db
from app.main import app
from app.models.account import Account, AccountRole, AccountStatus
from app.utils import clock
from app.utils.auth import hash_password
from app.utils.mailer import MailDeliveryError, Mailer, get_mailer
from app.utils.revocation import InMemoryRevocationStore, get_revocation_store
from create_admin import create_admin

TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

DEFAULT_PASSWORD = "s3cret-pass"


class RecordingMailer(Mailer):
    """Collects outgoing mail instead of talking to SMTP"""

    def __init__(self) -> None:
        self.sent: List[dict] = []
        self.fail = False

    def send_mail(self, to: str, subject: str, text: str, html: Optional[str] = None) -> None:
        if self.fail:
            raise MailDeliveryError("SMTP unavailable")
        self.sent.append({"to": to, "subject": subject, "text": text, "html": html})


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def revocation_store() -> InMemoryRevocationStore:
    return InMemoryRevocationStore()


@pytest.fixture(scope="function")
def client(db: Session, mailer: RecordingMailer, revocation_store: InMemoryRevocationStore) -> Generator[TestClient, None, None]:
    """Create test client with database, mail and revocation overrides"""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_revocation_store] = lambda: revocation_store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_account(db: Session) -> Callable[..., Account]:
    """Insert an account directly, bypassing the registration flow"""

    def _make(
        email: str = "worker@example.com",
        password: Optional[str] = DEFAULT_PASSWORD,
        role: str = AccountRole.EMPLOYEE,
        status: str = AccountStatus.ACTIVE,
        name: str = "Test User",
        **fields,
    ) -> Account:
        account = Account(
            name=name,
            email=email,
            role=role,
            status=status,
            password_hash=hash_password(password) if password else None,
            **fields,
        )
        db.add(account)
        db.commit()
        db.refresh(account)
        return account

    return _make


@pytest.fixture
def admin(db: Session) -> Account:
    account, _ = create_admin(db, name="Site Admin", email="admin@example.com", password=DEFAULT_PASSWORD)
    return account


def login(client: TestClient, email: str, password: str = DEFAULT_PASSWORD) -> dict:
    """Log in and return the response body; fails the test on non-200"""
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(client: TestClient, admin: Account) -> dict:
    return bearer(login(client, admin.email)["access_token"])


@pytest.fixture
def pin_clock(monkeypatch) -> Callable:
    """Pin ``clock.utcnow`` to a fixed datetime; call again to move it."""

    def _pin(moment):
        monkeypatch.setattr(clock, "utcnow", lambda: moment)
        return moment

    return _pin
