import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["MERCADOPAGO_ACCESS_TOKEN"] = ""

from datetime import date, timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from barbershop.auth import hash_password, start_session  # noqa: E402
from barbershop.core.schedule import DEFAULT_WORK_SCHEDULE  # noqa: E402
from barbershop.db import get_session  # noqa: E402
from barbershop.errors import ProviderError  # noqa: E402
from barbershop.main import app  # noqa: E402
from barbershop.mercadopago import get_payment_provider  # noqa: E402
from barbershop.models import Account, Barber, Profile, Service  # noqa: E402


class FakeProvider:
    """Stands in for MercadoPagoClient in route tests."""

    def __init__(self):
        self.payments = {}
        self.preferences = []
        self.fail = False

    async def create_preference(self, **data):
        if self.fail:
            raise ProviderError("Failed to create preference")
        self.preferences.append(data)
        return {
            "id": "pref-123",
            "init_point": "https://mp.test/init/pref-123",
            "sandbox_init_point": "https://sandbox.mp.test/init/pref-123",
        }

    async def get_payment(self, payment_id):
        if self.fail or payment_id not in self.payments:
            raise ProviderError("Failed to fetch payment")
        return self.payments[payment_id]


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def client(session, provider):
    def override_session():
        return session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_payment_provider] = lambda: provider
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_profile(session, email, role="client", full_name="Test User", password="password123"):
    account = Account(email=email, password_hash=hash_password(password))
    session.add(account)
    session.flush()
    profile = Profile(id=account.id, email=email, full_name=full_name, role=role)
    session.add(profile)
    session.commit()
    session.refresh(profile)
    return profile


def auth_headers(session, profile):
    token, _ = start_session(session, profile)
    return {"Authorization": f"Bearer {token}"}


def next_weekday(weekday, start=None):
    """The next date strictly after ``start`` that falls on ``weekday`` (Monday = 0)."""
    start = start or date.today()
    days = (weekday - start.weekday()) % 7 or 7
    return start + timedelta(days=days)


@pytest.fixture
def shop(session):
    """One active service, one barber on the default schedule, one client and an admin."""
    admin = make_profile(session, "admin@shop.test", role="admin", full_name="Ana Admin")
    barber_profile = make_profile(session, "barber@shop.test", role="barber", full_name="Beto Barber")
    client_profile = make_profile(session, "client@shop.test", role="client", full_name="Carla Client")

    service = Service(name="Haircut", description="Classic cut", price=150.0, duration=30)
    session.add(service)
    barber = Barber(
        profile_id=barber_profile.id,
        work_schedule={name: dict(day) for name, day in DEFAULT_WORK_SCHEDULE.items()},
    )
    session.add(barber)
    session.commit()
    session.refresh(service)
    session.refresh(barber)

    return {
        "admin": admin,
        "barber_profile": barber_profile,
        "client_profile": client_profile,
        "service": service,
        "barber": barber,
        "admin_headers": auth_headers(session, admin),
        "barber_headers": auth_headers(session, barber_profile),
        "client_headers": auth_headers(session, client_profile),
        "monday": next_weekday(0),
    }
