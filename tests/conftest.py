"""Shared test fixtures for the Odim API test suite.

Uses an in-memory SQLite database with StaticPool so every session shares one
connection. Redis is left unconfigured, so rate limits are in-memory, the
cache is a no-op and webhooks are processed inline. Paystack is patched per
test with AsyncMocks on the shared client instance.
"""

import os

# Settings are read at import time; these must be in place before ``app`` loads
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["PAYSTACK_SECRET_KEY"] = "sk_test_odim"
os.environ["PAYSTACK_PUBLIC_KEY"] = "pk_test_odim"
os.environ["FIREBASE_PROJECT_ID"] = "odim-test"
os.environ["ADMIN_EMAILS"] = "ops@odim.app"
os.environ["SECURITY_HEADERS_ENABLED"] = "true"
os.environ.pop("REDIS_URL", None)
os.environ.pop("REDIS_HOST", None)
os.environ.pop("RESEND_API_KEY", None)

from datetime import date, timedelta  # noqa: E402
from unittest.mock import AsyncMock  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app import rate_limiter  # noqa: E402
from app.auth import get_current_user  # noqa: E402
from app.database import Base, get_db  # noqa: E402
from app.domain.payments.paystack_service import paystack_service  # noqa: E402
from app.main import app  # noqa: E402
from app.models import (  # noqa: E402
    Creator,
    CreatorAvailability,
    CreatorPlan,
    PriceListItem,
    User,
)
from app.shared.retry import circuit_breakers  # noqa: E402


# ---------------------------------------------------------------------------
# In-memory SQLite test engine (shared via StaticPool)
# ---------------------------------------------------------------------------

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSession = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(autouse=True)
def _setup_db():
    """Create all tables before each test, drop after. Also clear global state."""
    rate_limiter.memory_cache.clear()
    circuit_breakers.reset_all()
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)


# ---------------------------------------------------------------------------
# Core fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def db():
    session = TestSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
async def client(db):
    """httpx AsyncClient wired to the FastAPI app, sharing the test session."""

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def login():
    """Authenticate subsequent requests as ``user`` without a Firebase token."""

    def _login(user: User):
        app.dependency_overrides[get_current_user] = lambda: user
        return user

    return _login


@pytest.fixture
def paystack(monkeypatch):
    """Replace every outbound Paystack call with an AsyncMock."""
    mocks = {
        "initialize_transaction": AsyncMock(
            return_value={
                "authorization_url": "https://checkout.paystack.com/abc123",
                "access_code": "abc123",
            }
        ),
        "verify_transaction": AsyncMock(return_value={"status": "success"}),
        "create_transfer_recipient": AsyncMock(return_value={"recipient_code": "RCP_test123"}),
        "initiate_transfer": AsyncMock(return_value={"transfer_code": "TRF_test123", "status": "pending"}),
    }
    for name, mock in mocks.items():
        monkeypatch.setattr(paystack_service, name, mock)
    return mocks


# ---------------------------------------------------------------------------
# Seeding helpers
# ---------------------------------------------------------------------------


def make_user(db, email="fan@example.com", **kwargs) -> User:
    user = User(firebase_uid=kwargs.pop("firebase_uid", f"uid-{email}"), email=email, **kwargs)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_creator(db, email="ada@example.com", username="ada", **kwargs) -> Creator:
    user = make_user(db, email=email, is_creator=True)
    defaults = {
        "display_name": "Ada Glam",
        "category": "makeup",
        "bank_code": "058",
        "account_number": "0123456789",
        "account_name": "Ada Obi",
        "paystack_recipient_code": "RCP_ada",
        "paystack_subaccount_code": "ACCT_ada",
    }
    defaults.update(kwargs)
    creator = Creator(user_id=user.id, username=username, **defaults)
    db.add(creator)
    db.commit()
    db.refresh(creator)
    return creator


def make_plan(db, creator, price=500000, name="Gold") -> CreatorPlan:
    plan = CreatorPlan(creator_id=creator.id, name=name, price=price, features=["Weekly tutorials"])
    db.add(plan)
    db.commit()
    db.refresh(plan)
    return plan


def make_service(db, creator, price=2000000, name="Bridal Makeup", **kwargs) -> PriceListItem:
    item = PriceListItem(creator_id=creator.id, name=name, price=price, category="Bridal", **kwargs)
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def open_date(db, creator, day=None, max_bookings=None) -> CreatorAvailability:
    day = day or date.today() + timedelta(days=7)
    slot = CreatorAvailability(creator_id=creator.id, date=day, is_available=True, max_bookings=max_bookings)
    db.add(slot)
    db.commit()
    db.refresh(slot)
    return slot


@pytest.fixture
def creator(db):
    return make_creator(db)


@pytest.fixture
def creator_user(db, creator, login):
    return login(creator.user)
