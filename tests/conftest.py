"""Pytest fixtures for worker tests."""

import os
from collections.abc import Generator

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ALERT_TRIGGER_ENABLED", "false")

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from agrileafy.db import models  # noqa: F401  # Imported for side effects
from agrileafy.db.base import Base
from agrileafy.db.models import Alert, Device, RegisteredToken
from agrileafy.db.session import enable_sqlite_foreign_keys
from agrileafy.services.push_gateway import DeliveryReport, PushMessage, TokenOutcome
from agrileafy.services.token_registry import registry_key


class StubPushGateway:
    """Records multicast calls and fails the tokens it is told to."""

    def __init__(self, failing_tokens=(), error: Exception | None = None):
        self.failing_tokens = set(failing_tokens)
        self.error = error
        self.calls: list[tuple[PushMessage, list[str]]] = []

    def send_multicast(self, message, tokens):
        self.calls.append((message, list(tokens)))
        if self.error is not None:
            raise self.error
        outcomes = [
            TokenOutcome(
                token=token,
                success=token not in self.failing_tokens,
                error="messaging/registration-token-not-registered"
                if token in self.failing_tokens
                else None,
                message_id=None if token in self.failing_tokens else f"msg-{token}",
            )
            for token in tokens
        ]
        return DeliveryReport.from_outcomes(outcomes)


@pytest.fixture(scope="session")
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", enable_sqlite_foreign_keys)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session(db_engine) -> Generator[Session, None, None]:
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.query(RegisteredToken).delete()
        db.query(Alert).delete()
        db.query(Device).delete()
        db.commit()
        db.close()


@pytest.fixture()
def task_session_factory(db_session):
    factory = sessionmaker(autocommit=False, autoflush=False, bind=db_session.bind)
    sessions: list = []

    def create_session():
        session = factory()
        sessions.append(session)
        return session

    try:
        yield create_session
    finally:
        for session in sessions:
            session.close()


@pytest.fixture()
def push_gateway() -> StubPushGateway:
    return StubPushGateway()


@pytest.fixture()
def add_device(db_session):
    """Create a device with ``{token: active}`` registrations."""

    def _add(device_id: str, tokens: dict[str, bool] | None = None) -> Device:
        device = Device(id=device_id)
        db_session.add(device)
        for token, active in (tokens or {}).items():
            db_session.add(
                RegisteredToken(
                    device_id=device_id,
                    token_key=registry_key(token),
                    token=token,
                    active=active,
                )
            )
        db_session.commit()
        return device

    return _add


@pytest.fixture()
def add_alert(db_session):
    def _add(device_id: str, alert_id: str, **fields) -> Alert:
        alert = Alert(device_id=device_id, id=alert_id, **fields)
        db_session.add(alert)
        db_session.commit()
        return alert

    return _add


@pytest.fixture()
def gateway_factory():
    return StubPushGateway
