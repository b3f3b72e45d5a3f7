from datetime import datetime, time, timedelta

import pytest
from sqlalchemy.exc import SQLAlchemyError

from salonbook import models
from salonbook.domain.payments.repository import PaymentRepository
from salonbook.domain.payments.service import PaymentService, period_start
from salonbook.errors import (
    ConfigurationError,
    NotFoundError,
    PaymentCreationError,
    PaymentVerificationError,
    RemoteOperationError,
)

from .conftest import CLIENT_UID, OWNER_UID


def add_account(db, salon, plan="free", **extra):
    account = models.StripeAccount(salon_id=salon.id, subscription_plan=plan, **extra)
    db.add(account)
    db.commit()
    return account


def add_payment(db, booking, amount=1000, commission=200, status="completed", created_at=None, **extra):
    payment = models.Payment(
        booking_id=booking.id,
        salon_id=booking.salon_id,
        amount=amount,
        total_service_price=amount * 5,
        commission=commission,
        salon_amount=amount - commission,
        commission_rate=0.20,
        status=status,
        created_at=created_at or datetime.utcnow(),
        **extra,
    )
    db.add(payment)
    db.commit()
    return payment


@pytest.fixture
def large_booking(make_booking):
    return make_booking(time(14, 0), time(15, 0), status="pending", total_price=10000)


def test_payment_intent_without_account_uses_free_plan(db, large_booking):
    result = PaymentService(db).create_payment_intent(large_booking.id)

    assert result.amount == 2000
    assert result.commission == 400
    assert result.salon_amount == 1600
    assert result.remaining_amount == 8000
    assert result.total_service_price == 10000
    assert result.status == "pending"
    assert result.client_secret is None

    stored = PaymentRepository.get_payment_by_id(db, result.id)
    assert stored.status == "pending"
    assert stored.client_id == CLIENT_UID
    assert stored.salon_id == large_booking.salon_id
    assert stored.commission + stored.salon_amount == stored.amount


def test_payment_intent_uses_salon_plan_and_processor(db, salon, large_booking, fake_stripe):
    add_account(db, salon, plan="premium", stripe_account_id="acct_123")

    result = PaymentService(db, fake_stripe).create_payment_intent(large_booking.id)

    assert result.commission == 200
    assert result.commission_rate == pytest.approx(0.10)
    call = fake_stripe.intents[0]
    assert call["amount"] == 2000
    assert call["destination_account"] == "acct_123"
    assert call["application_fee_amount"] == 200
    assert call["idempotency_key"] == f"booking-{large_booking.id}-deposit-2000-200"
    assert result.stripe_payment_intent_id == f"pi_booking-{large_booking.id}-deposit-2000-200"
    assert result.client_secret.endswith("_secret")


def test_payment_amount_comes_from_the_booking(db, booking, fake_stripe):
    result = PaymentService(db, fake_stripe).create_payment_intent(booking.id, client_id=CLIENT_UID)

    assert booking.total_price == 5000
    assert result.total_service_price == 5000
    assert result.amount == 1000
    assert fake_stripe.intents[0]["amount"] == 1000
    assert fake_stripe.intents[0]["metadata"]["salon_id"] == booking.salon_id


def test_payment_intent_for_unknown_or_foreign_booking(db, booking):
    service = PaymentService(db)

    with pytest.raises(NotFoundError):
        service.create_payment_intent("missing")
    with pytest.raises(NotFoundError):
        service.create_payment_intent(booking.id, client_id="someone-else")
    assert db.query(models.Payment).count() == 0


def test_repeated_payment_intent_reuses_payment(db, booking, fake_stripe):
    service = PaymentService(db, fake_stripe)
    first = service.create_payment_intent(booking.id)
    second = service.create_payment_intent(booking.id)

    assert first.id == second.id
    assert fake_stripe.intents[0]["idempotency_key"] == fake_stripe.intents[1]["idempotency_key"]
    assert db.query(models.Payment).count() == 1


def test_repeated_payment_intent_without_processor_reuses_payment(db, booking):
    service = PaymentService(db)
    first = service.create_payment_intent(booking.id)
    second = service.create_payment_intent(booking.id)

    assert first.id == second.id
    assert db.query(models.Payment).count() == 1


def test_plan_change_between_attempts_gets_a_new_intent(db, salon, booking, fake_stripe):
    service = PaymentService(db, fake_stripe)
    first = service.create_payment_intent(booking.id)

    add_account(db, salon, plan="premium")
    second = service.create_payment_intent(booking.id)

    keys = [call["idempotency_key"] for call in fake_stripe.intents]
    assert keys[0] != keys[1]
    assert first.commission == 200
    assert second.commission == 100
    assert second.stripe_payment_intent_id != first.stripe_payment_intent_id


def test_price_change_between_attempts_gets_a_new_intent(db, booking, fake_stripe):
    service = PaymentService(db, fake_stripe)
    service.create_payment_intent(booking.id)

    booking.total_price = 6000
    db.commit()
    second = service.create_payment_intent(booking.id)

    assert second.amount == 1200
    assert fake_stripe.intents[0]["idempotency_key"] != fake_stripe.intents[1]["idempotency_key"]
    assert db.query(models.Payment).count() == 2


def test_full_payment_intent(db, booking):
    result = PaymentService(db).create_payment_intent(booking.id, payment_type="full")

    assert result.amount == 5000
    assert result.remaining_amount == 0
    assert result.commission == 1000


def test_failed_write_raises_payment_creation_error(db, booking, monkeypatch):
    def broken(*args, **kwargs):
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(PaymentRepository, "create_payment", staticmethod(broken))

    with pytest.raises(PaymentCreationError, match="disk full"):
        PaymentService(db).create_payment_intent(booking.id)


def test_stats_with_no_payments_are_zero(db, salon):
    stats = PaymentService(db).get_salon_payment_stats(salon.id, "month")

    assert stats.total_revenue == 0
    assert stats.transaction_count == 0
    assert stats.average_transaction == 0


def test_stats_only_count_completed_payments_in_period(db, booking):
    add_payment(db, booking, amount=1000, commission=200)
    add_payment(db, booking, amount=3000, commission=600)
    add_payment(db, booking, amount=9999, commission=999, status="pending")
    add_payment(db, booking, amount=5000, commission=1000, created_at=datetime.utcnow() - timedelta(days=60))

    stats = PaymentService(db).get_salon_payment_stats(booking.salon_id, "month")

    assert stats.total_revenue == 4000
    assert stats.total_commission == 800
    assert stats.net_revenue == 3200
    assert stats.transaction_count == 2
    assert stats.average_transaction == 2000


def test_period_start():
    now = datetime(2026, 3, 31, 12, 0)
    assert period_start("week", now) == datetime(2026, 3, 24, 12, 0)
    assert period_start("month", now) == datetime(2026, 2, 28, 12, 0)
    assert period_start("year", now) == datetime(2025, 3, 31, 12, 0)
    with pytest.raises(ValueError):
        period_start("decade", now)


def test_confirm_payment_confirms_booking(db, booking, fake_stripe):
    service = PaymentService(db, fake_stripe)
    intent = service.create_payment_intent(booking.id, client_id=CLIENT_UID)
    fake_stripe.settle(intent.stripe_payment_intent_id)

    payment = service.confirm_payment(intent.id, intent.stripe_payment_intent_id, client_id=CLIENT_UID)

    db.refresh(booking)
    assert payment.status == "completed"
    assert payment.paid_at is not None
    assert booking.status == "confirmed"

    # confirming again changes nothing
    assert service.confirm_payment(intent.id, intent.stripe_payment_intent_id).paid_at == payment.paid_at


def test_confirm_rejects_made_up_intent(db, booking, fake_stripe):
    service = PaymentService(db, fake_stripe)
    intent = service.create_payment_intent(booking.id)

    with pytest.raises(PaymentVerificationError):
        service.confirm_payment(intent.id, "pi_made_up")

    db.refresh(booking)
    assert PaymentRepository.get_payment_by_id(db, intent.id).status == "pending"
    assert booking.status == "pending"


def test_confirm_rejects_unsettled_or_short_intent(db, booking, fake_stripe):
    service = PaymentService(db, fake_stripe)
    intent = service.create_payment_intent(booking.id)

    with pytest.raises(PaymentVerificationError, match="requires_payment_method"):
        service.confirm_payment(intent.id, intent.stripe_payment_intent_id)

    fake_stripe.settle(intent.stripe_payment_intent_id, amount=1)
    with pytest.raises(PaymentVerificationError, match="expected 1000"):
        service.confirm_payment(intent.id, intent.stripe_payment_intent_id)

    db.refresh(booking)
    assert booking.status == "pending"


def test_confirm_payment_recorded_without_intent(db, booking, fake_stripe):
    payment = add_payment(db, booking, status="pending")
    service = PaymentService(db, fake_stripe)

    with pytest.raises(RemoteOperationError, match="No such payment_intent"):
        service.confirm_payment(payment.id, "pi_made_up")
    with pytest.raises(ConfigurationError):
        PaymentService(db).confirm_payment(payment.id, "pi_made_up")

    db.refresh(booking)
    assert booking.status == "pending"


def test_confirm_is_limited_to_the_booking_client(db, booking, fake_stripe):
    intent = PaymentService(db, fake_stripe).create_payment_intent(booking.id)

    with pytest.raises(NotFoundError):
        PaymentService(db, fake_stripe).confirm_payment(intent.id, intent.stripe_payment_intent_id, client_id="other")


def test_confirm_unknown_payment(db, fake_stripe):
    with pytest.raises(NotFoundError):
        PaymentService(db, fake_stripe).confirm_payment("missing", "pi_x")


def test_refund_calls_processor(db, booking, fake_stripe):
    payment = add_payment(db, booking, stripe_payment_intent_id="pi_refund_me")

    PaymentService(db, fake_stripe).initiate_refund(payment.id, OWNER_UID, "client cancelled")

    assert fake_stripe.refunds == [("pi_refund_me", "client cancelled")]
    assert payment.status == "refunded"
    assert payment.refund_reason == "client cancelled"


def test_refund_is_reserved_to_the_salon_owner(db, booking, fake_stripe):
    payment = add_payment(db, booking, stripe_payment_intent_id="pi_refund_me")

    with pytest.raises(NotFoundError):
        PaymentService(db, fake_stripe).initiate_refund(payment.id, CLIENT_UID)

    assert fake_stripe.refunds == []
    assert payment.status == "completed"


def test_only_completed_payments_are_refunded(db, booking, fake_stripe):
    payment = add_payment(db, booking, status="pending", stripe_payment_intent_id="pi_pending")

    with pytest.raises(PaymentVerificationError):
        PaymentService(db, fake_stripe).initiate_refund(payment.id, OWNER_UID)
    assert fake_stripe.refunds == []


def test_balance_counts_unpaid_out_completed_payments(db, booking):
    add_payment(db, booking, amount=1000, commission=200)
    add_payment(db, booking, amount=2000, commission=400, is_paid_out=True)
    add_payment(db, booking, amount=500, commission=100, status="pending")

    assert PaymentService(db).get_salon_balance(booking.salon_id) == {
        "available_balance": 800,
        "currency": "eur",
    }


def test_subscription_plan_update(db, salon):
    service = PaymentService(db)
    with pytest.raises(NotFoundError):
        service.update_subscription_plan(salon.id, "pro")

    service.create_stripe_connect_account(salon.id)
    account = service.update_subscription_plan(salon.id, "pro")
    assert account.subscription_plan == "pro"
    assert account.subscription_status == "active"

    account = service.update_subscription_plan(salon.id, "free")
    assert account.subscription_status is None


def test_connect_account_is_created_once(db, salon):
    service = PaymentService(db)
    first = service.create_stripe_connect_account(salon.id)
    second = service.create_stripe_connect_account(salon.id)

    assert first.id == second.id
    assert service.get_stripe_account(salon.id).subscription_plan == "free"


def test_salon_payments_pagination(db, booking):
    base = datetime.utcnow()
    for i in range(3):
        add_payment(db, booking, amount=100 * (i + 1), commission=20, created_at=base - timedelta(minutes=i))

    page = PaymentService(db).get_salon_payments(booking.salon_id, page=1, limit=2)

    assert page["total"] == 3
    assert [p.amount for p in page["data"]] == [100, 200]
    assert page["has_more"] is True


def test_salon_owner_check(db, salon):
    service = PaymentService(db)

    assert service.check_salon_owner(salon.id, OWNER_UID).id == salon.id
    with pytest.raises(NotFoundError):
        service.check_salon_owner(salon.id, CLIENT_UID)
    with pytest.raises(NotFoundError):
        service.check_salon_owner("missing", OWNER_UID)


def test_payment_endpoints(client, booking, fake_stripe, current_user):
    # a price sent by the client is ignored
    response = client.post(
        "/payments/intents",
        json={"booking_id": booking.id, "salon_id": booking.salon_id, "total_service_price": 100},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["amount"] == 1000
    assert body["commission"] == 200
    assert fake_stripe.intents[0]["metadata"]["booking_id"] == booking.id

    response = client.post(
        f"/payments/{body['id']}/confirm", json={"stripe_payment_intent_id": "pi_made_up"}
    )
    assert response.status_code == 409

    current_user["uid"] = OWNER_UID
    response = client.get(f"/payments/salons/{booking.salon_id}/stats", params={"period": "week"})
    assert response.status_code == 200
    assert response.json()["transaction_count"] == 0

    response = client.get(f"/payments/salons/{booking.salon_id}/stats", params={"period": "decade"})
    assert response.status_code == 422

    response = client.put(f"/payments/salons/{booking.salon_id}/plan", json={"plan": "gold"})
    assert response.status_code == 422
    assert "plan must be one of" in response.json()["detail"][0]["msg"]


def test_confirm_endpoint_after_stripe_success(client, booking, fake_stripe):
    body = client.post("/payments/intents", json={"booking_id": booking.id}).json()
    fake_stripe.settle(body["stripe_payment_intent_id"])

    response = client.post(
        f"/payments/{body['id']}/confirm", json={"stripe_payment_intent_id": body["stripe_payment_intent_id"]}
    )

    assert response.status_code == 200
    assert response.json()["status"] == "completed"


@pytest.mark.parametrize(
    "method, path",
    [
        ("get", "/payments/salons/salon-1"),
        ("get", "/payments/salons/salon-1/stats"),
        ("get", "/payments/salons/salon-1/balance"),
        ("get", "/payments/salons/salon-1/account"),
        ("post", "/payments/salons/salon-1/account"),
    ],
)
def test_salon_endpoints_hidden_from_other_users(client, salon, method, path):
    response = client.request(method, path)
    assert response.status_code == 404


def test_plan_change_requires_salon_owner(client, db, salon, current_user):
    account = add_account(db, salon)

    response = client.put(f"/payments/salons/{salon.id}/plan", json={"plan": "premium"})
    assert response.status_code == 404
    db.refresh(account)
    assert account.subscription_plan == "free"

    current_user["uid"] = OWNER_UID
    response = client.put(f"/payments/salons/{salon.id}/plan", json={"plan": "premium"})
    assert response.status_code == 200
    assert response.json()["subscription_plan"] == "premium"


def test_refund_endpoint_requires_salon_owner(client, db, booking, fake_stripe, current_user):
    payment = add_payment(db, booking, stripe_payment_intent_id="pi_paid")

    assert client.post(f"/payments/{payment.id}/refund", json={}).status_code == 404
    assert fake_stripe.refunds == []

    current_user["uid"] = OWNER_UID
    response = client.post(f"/payments/{payment.id}/refund", json={"reason": "salon closed"})
    assert response.status_code == 200
    assert response.json()["status"] == "refunded"
