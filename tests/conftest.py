import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("FIREBASE_PROJECT_ID", "salonbook-test")

from datetime import date, time  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from salonbook import models  # noqa: E402
from salonbook.auth import get_current_user_id  # noqa: E402
from salonbook.database import Base, get_db  # noqa: E402
from salonbook.domain.payments.stripe_service import StripeService, get_stripe_service  # noqa: E402
from salonbook.errors import RemoteOperationError  # noqa: E402
from salonbook.main import app  # noqa: E402

WEBHOOK_SECRET = "whsec_test_secret"
CLIENT_UID = "client-uid-1"
OWNER_UID = "owner-uid"

OPENING_HOURS = {
    "monday": {"open": "09:00", "close": "12:00", "isClosed": False},
    "tuesday": {"open": "09:00", "close": "19:00", "isClosed": False},
    "sunday": {"open": "09:00", "close": "19:00", "isClosed": True},
}


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def salon(db):
    salon = models.Salon(id="salon-1", owner_id=OWNER_UID, name="Salon Test", opening_hours=OPENING_HOURS)
    db.add(salon)
    db.commit()
    return salon


@pytest.fixture
def make_booking(db, salon):
    def _make(start, end, status="confirmed", booking_date=date(2026, 11, 2), client_id=CLIENT_UID, **extra):
        booking = models.Booking(
            salon_id=salon.id,
            client_id=client_id,
            booking_date=booking_date,
            start_time=start,
            end_time=end,
            status=status,
            total_price=extra.pop("total_price", 5000),
            **extra,
        )
        db.add(booking)
        db.commit()
        return booking

    return _make


@pytest.fixture
def booking(make_booking):
    return make_booking(time(10, 0), time(11, 0), status="pending")


class FakeStripe(StripeService):
    """Records calls instead of reaching the Stripe API"""

    def __init__(self):
        super().__init__(api_key="sk_test_fake", webhook_secret=WEBHOOK_SECRET, currency="eur")
        self.intents = []
        self.refunds = []
        self.intent_states = {}

    def create_payment_intent(self, amount, metadata, destination_account=None,
                              application_fee_amount=None, idempotency_key=None):
        self.intents.append({
            "amount": amount,
            "metadata": metadata,
            "destination_account": destination_account,
            "application_fee_amount": application_fee_amount,
            "idempotency_key": idempotency_key,
        })
        intent_id = f"pi_{idempotency_key}"
        self.intent_states[intent_id] = {
            "id": intent_id,
            "status": "requires_payment_method",
            "amount": amount,
            "metadata": metadata,
        }
        return {"id": intent_id, "client_secret": f"{intent_id}_secret"}

    def retrieve_payment_intent(self, payment_intent_id):
        if payment_intent_id not in self.intent_states:
            raise RemoteOperationError(f"No such payment_intent: '{payment_intent_id}'")
        return dict(self.intent_states[payment_intent_id])

    def settle(self, payment_intent_id, amount=None):
        """Simulate the client completing the payment on Stripe's side"""
        state = self.intent_states[payment_intent_id]
        state["status"] = "succeeded"
        if amount is not None:
            state["amount"] = amount

    def create_refund(self, payment_intent_id, reason=None):
        self.refunds.append((payment_intent_id, reason))
        return {"id": f"re_{payment_intent_id}", "status": "succeeded"}


@pytest.fixture
def fake_stripe():
    return FakeStripe()


@pytest.fixture
def current_user():
    """Mutable holder for the uid the test client authenticates as"""
    return {"uid": CLIENT_UID}


@pytest.fixture
def client(db, fake_stripe, current_user):
    def _get_db():
        yield db

    async def _user():
        return current_user["uid"]

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_current_user_id] = _user
    app.dependency_overrides[get_stripe_service] = lambda: fake_stripe
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
