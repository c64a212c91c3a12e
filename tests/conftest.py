"""
Shared test fixtures — SQLite test database, test client, fake routing
provider and fake email relay. No test touches the network.
"""

import os
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Set env before importing app modules
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["GOOGLE_MAPS_API_KEY"] = ""
os.environ["EMAIL_ENDPOINT"] = ""

from removals.database import Base, get_db
from removals.errors import EmailDeliveryError
from removals.main import app
from removals.route_estimator import RouteCostEstimator, RouteErr, RouteOk
from removals.routers.quote_session import get_email_sender, get_route_estimator


TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


# --- Fakes ---

class FakeRouteProvider:
    """Returns a canned lookup result and records what it was asked."""

    def __init__(self, result=None):
        self.result = result or RouteErr("routing provider not configured")
        self.calls = []

    async def lookup(self, origin, destination):
        self.calls.append((origin, destination))
        return self.result


class FakeEmailSender:
    """Collects payloads instead of POSTing them. fail=True simulates a relay outage."""

    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    async def send(self, payload):
        if self.fail:
            raise EmailDeliveryError("relay down")
        self.sent.append(payload)
        return True


# --- Fixtures ---

@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def route_provider():
    """Failing provider by default, so routes use the postcode fallback."""
    provider = FakeRouteProvider()
    app.dependency_overrides[get_route_estimator] = lambda: RouteCostEstimator(provider)
    yield provider
    app.dependency_overrides.pop(get_route_estimator, None)


@pytest.fixture
def live_route_provider():
    provider = FakeRouteProvider(RouteOk(distance_km=32, duration_minutes=41, traffic_conditions="live"))
    app.dependency_overrides[get_route_estimator] = lambda: RouteCostEstimator(provider)
    yield provider
    app.dependency_overrides.pop(get_route_estimator, None)


@pytest.fixture
def email_sender():
    sender = FakeEmailSender()
    app.dependency_overrides[get_email_sender] = lambda: sender
    yield sender
    app.dependency_overrides.pop(get_email_sender, None)


@pytest.fixture
def failing_email_sender():
    sender = FakeEmailSender(fail=True)
    app.dependency_overrides[get_email_sender] = lambda: sender
    yield sender
    app.dependency_overrides.pop(get_email_sender, None)


@pytest.fixture
def client(route_provider, email_sender):
    """FastAPI test client with routing and email faked out."""
    return TestClient(app)


@pytest.fixture
def db():
    """Direct database session for test setup/assertions."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
