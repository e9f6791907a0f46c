"""Shared pytest fixtures for the Budget This API tests."""

import os
import tempfile
from typing import Any, Callable, List, Optional

# Settings are read at import time; configure the environment first.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "development"
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["MOBILE_COMPAT_COOKIES"] = "false"
os.environ["NEXTAUTH_URL"] = "http://localhost:8080"
os.environ["LOG_FILE"] = os.path.join(tempfile.mkdtemp(prefix="budget-this-logs-"), "logs.txt")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.db.base import Base
from app.db.session import build_session_factory
from app.main import create_app
from app.models import CodePurpose, OneTimeCode, User
from app.services.auth_service import get_password_hash
from app.utils.email import Mailer

DEFAULT_PASSWORD = "correct-horse-battery"


class RecordingMailer(Mailer):
    """Mailer that records messages instead of talking to SMTP."""

    def __init__(self) -> None:
        super().__init__(settings)
        self.fail = False
        self.sent: List[dict] = []
        self.codes: List[dict] = []

    def send_email(self, to: str, subject: str, html_body: str, plain_body: str = "") -> bool:
        self.sent.append({"to": to, "subject": subject, "html": html_body, "plain": plain_body})
        return not self.fail

    def send_verification_email(self, to: str, code: str, first_name: str = "") -> bool:
        self.codes.append({"kind": "verification", "to": to, "code": code})
        return super().send_verification_email(to, code, first_name)

    def send_mfa_code_email(self, to: str, code: str, first_name: str = "") -> bool:
        self.codes.append({"kind": "mfa", "to": to, "code": code})
        return super().send_mfa_code_email(to, code, first_name)

    def send_password_reset_email(self, to: str, reset_url: str, first_name: str = "") -> bool:
        self.codes.append({"kind": "reset", "to": to, "code": reset_url.rsplit("token=", 1)[-1]})
        return super().send_password_reset_email(to, reset_url, first_name)

    def last_code(self, kind: str) -> Optional[str]:
        for entry in reversed(self.codes):
            if entry["kind"] == kind:
                return entry["code"]
        return None


@pytest.fixture
def engine() -> Any:
    """In-memory SQLite shared by every session of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine: Any) -> Any:
    return build_session_factory(engine)


@pytest.fixture
def db(session_factory: Any) -> Any:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def app(session_factory: Any, mailer: RecordingMailer) -> Any:
    return create_app(session_factory=session_factory, mailer=mailer)


@pytest.fixture
def client(app: Any) -> TestClient:
    return TestClient(app)


@pytest.fixture
def make_user(db: Session) -> Callable[..., User]:
    """Factory for persisted users; verified and MFA-free unless told otherwise."""

    def _make_user(
        email: str = "jane@example.com",
        password: str = DEFAULT_PASSWORD,
        first_name: str = "Jane",
        last_name: str = "Doe",
        email_verified: bool = True,
        mfa_enabled: bool = False,
    ) -> User:
        user = User(
            email=email,
            hashed_password=get_password_hash(password),
            first_name=first_name,
            last_name=last_name,
            email_verified=email_verified,
            mfa_enabled=mfa_enabled,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def codes_for(db: Session) -> Callable[[str, CodePurpose], List[OneTimeCode]]:
    """Fresh read of a user's one-time codes for a purpose, oldest first."""

    def _codes_for(user_id: str, purpose: CodePurpose) -> List[OneTimeCode]:
        db.expire_all()
        return (
            db.query(OneTimeCode)
            .filter(OneTimeCode.user_id == user_id, OneTimeCode.purpose == purpose)
            .order_by(OneTimeCode.created_at.asc())
            .all()
        )

    return _codes_for
