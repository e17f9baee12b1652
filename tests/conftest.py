"""
Fixtures compartidas: SQLite en memoria, cliente de email falso y tokens de sesión.
"""
import os
from datetime import datetime, timedelta

# Entorno de test antes de importar la app
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CRON_SECRET"] = "test-cron-secret"
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ["ADMIN_EMAIL"] = "admin@giltcounselling.com"
os.environ["APP_URL"] = "https://giltcounselling.test"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gilt_backend import models  # noqa: F401
from gilt_backend.database import Base, get_db
from gilt_backend.exceptions import EmailDeliveryError
from gilt_backend.main import app
from gilt_backend.models.booking import Booking, BOOKING_STATUS_CONFIRMED
from gilt_backend.security import create_session_token, cron_auth_limiter
from gilt_backend.services.email_client import get_email_client

CRON_HEADERS = {"Authorization": "Bearer test-cron-secret"}

# Instante fijo para los tests del dispatcher
NOW = datetime(2025, 3, 10, 9, 0, 0)


class FakeEmailClient:
    """Registra los envíos; puede fallar para ciertos destinatarios o ejecutar un hook."""

    def __init__(self):
        self.sent = []
        self.fail_for = set()
        # False: rechazo permanente (p. ej. 4xx de Resend); True: error temporal
        self.transient_failures = False
        self.on_send = None
        self.configured = True
        self.from_email = "Gilt Counselling <test@giltcounselling.test>"

    def send(self, to, subject, html, text=None, reply_to=None):
        recipients = [to] if isinstance(to, str) else list(to)
        if self.on_send is not None:
            self.on_send(recipients, subject)
        if any(r in self.fail_for for r in recipients):
            raise EmailDeliveryError(f"Rejected recipient {recipients[0]}", transient=self.transient_failures)
        self.sent.append({"to": recipients, "subject": subject, "html": html, "reply_to": reply_to})
        return f"msg-{len(self.sent)}"

    def sent_to(self, email):
        return [m for m in self.sent if email in m["to"]]


@pytest.fixture
def engine():
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
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def email_client():
    return FakeEmailClient()


@pytest.fixture
def client(session_factory, email_client):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_client] = lambda: email_client
    cron_auth_limiter.reset()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        cron_auth_limiter.reset()


@pytest.fixture
def admin_headers():
    token = create_session_token("admin-1", email="admin@giltcounselling.com", role="admin")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers():
    token = create_session_token("user-1", email="client@example.com", role="user")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_booking(db_session):
    counter = {"n": 0}

    def _make(hours_ahead=12, now=NOW, **overrides):
        counter["n"] += 1
        n = counter["n"]
        data = {
            "booking_reference": f"GILT-T{n:05d}",
            "user_name": f"Client {n}",
            "user_email": f"client{n}@example.com",
            "service": "Family Therapy",
            "scheduled_at": now + timedelta(hours=hours_ahead),
            "status": BOOKING_STATUS_CONFIRMED,
            "created_at": now - timedelta(days=3),
        }
        data.update(overrides)
        booking = Booking(**data)
        db_session.add(booking)
        db_session.commit()
        db_session.refresh(booking)
        return booking

    return _make
