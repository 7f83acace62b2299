"""Pytest fixtures for the orders service tests."""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["MAIL_ENABLED"] = "false"
os.environ["EVENTS_ENABLED"] = "false"
os.environ["JWT_SECRET"] = "test-secret"

from datetime import datetime, timedelta

import jwt
import pytest
from fastapi.testclient import TestClient

from furever_orders.api.deps import get_db, get_mail_transport
from furever_orders.core.config import settings
from furever_orders.db.models import Product, User
from furever_orders.db.session import Base, SessionLocal, engine
from furever_orders.errors import DependencyFailure
from furever_orders.main import app
from furever_orders.services.dispatcher import EventDispatcher
from furever_orders.services.notifications import NotificationFanout
from furever_orders.services.transitions import TransitionEngine


class FakeClock:
    """Settable stand-in for now_utc."""

    def __init__(self, start: datetime = datetime(2026, 1, 15, 9, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingTransport:
    def __init__(self):
        self.sent = []

    def send(self, to: str, subject: str, html: str) -> None:
        self.sent.append((to, subject, html))


class FailingTransport:
    def __init__(self):
        self.attempts = 0

    def send(self, to: str, subject: str, html: str) -> None:
        self.attempts += 1
        raise DependencyFailure("smtp", "connection refused")


@pytest.fixture
def db():
    """Fresh schema on the shared in-memory database."""
    Base.metadata.create_all(engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mail():
    return RecordingTransport()


@pytest.fixture
def failing_mail():
    return FailingTransport()


@pytest.fixture
def users(db):
    """One customer, two active admins and one deactivated admin."""
    rows = [
        User(id="U1", name="Maya Cruz", email="maya@example.com"),
        User(id="U2", name="Leo Park", email="leo@example.com"),
        User(id="A1", name="Admin One", email="admin1@furever.com", is_admin=True),
        User(id="A2", name="Admin Two", email="admin2@furever.com", is_admin=True),
        User(id="A3", name="Former Admin", email="admin3@furever.com", is_admin=True, is_active=False),
    ]
    db.add_all(rows)
    db.commit()
    return {u.id: u for u in rows}


@pytest.fixture
def products(db):
    rows = [
        Product(id="P1", name="Chicken Kibble 5kg", price_cents=2000, count_in_stock=50, low_stock_threshold=10),
        Product(id="P2", name="Rope Tug Toy", price_cents=500, count_in_stock=12, low_stock_threshold=10),
        Product(id="P3", name="Catnip Mouse", price_cents=350, count_in_stock=3, low_stock_threshold=5),
    ]
    db.add_all(rows)
    db.commit()
    return {p.id: p for p in rows}


@pytest.fixture
def engine_(db, clock):
    return TransitionEngine(db, clock=clock)


@pytest.fixture
def fanout(db, mail, clock):
    return NotificationFanout(db, transport=mail, clock=clock)


@pytest.fixture
def dispatcher(db, fanout):
    return EventDispatcher(db, fanout)


@pytest.fixture
def deliver(engine_, dispatcher, clock):
    """Walk an order from Pending to Delivered, one minute per step, dispatching each."""

    def _deliver(order_id: str):
        result = None
        for status in ("Processing", "Shipped", "Delivered"):
            clock.advance(minutes=1)
            result = engine_.apply_status(order_id, status)
            dispatcher.dispatch(result.events)
        return result

    return _deliver


@pytest.fixture
def make_headers():
    def _make(user_id: str, admin: bool = False) -> dict:
        payload = {"sub": user_id, "role": "admin" if admin else "customer", "type": "access"}
        token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
        return {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture
def client(db, mail):
    """TestClient sharing the test session and recording outgoing mail."""
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_mail_transport] = lambda: mail
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()
