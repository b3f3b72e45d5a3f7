import pytest
import stripe

from salonbook.domain.payments.stripe_service import StripeService
from salonbook.errors import ConfigurationError, RemoteOperationError


def test_missing_key_fails_before_any_call(monkeypatch):
    def unexpected(**kwargs):
        raise AssertionError("Stripe must not be called")

    monkeypatch.setattr(stripe.PaymentIntent, "create", unexpected)
    service = StripeService(api_key=None)

    assert service.is_available() is False
    with pytest.raises(ConfigurationError):
        service.create_payment_intent(1000, {"booking_id": "b1"})


def test_missing_webhook_secret():
    with pytest.raises(ConfigurationError):
        StripeService(api_key="sk_test").construct_event(b"{}", "t=1,v1=x")


def test_destination_charge_params(monkeypatch):
    calls = []

    def fake_create(**kwargs):
        calls.append(kwargs)
        return {"id": "pi_1", "client_secret": "pi_1_secret"}

    monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)
    service = StripeService(api_key="sk_test", currency="eur")

    result = service.create_payment_intent(
        2000, {"booking_id": "b1"}, destination_account="acct_1",
        application_fee_amount=400, idempotency_key="booking-b1-deposit",
    )

    assert result == {"id": "pi_1", "client_secret": "pi_1_secret"}
    params = calls[0]
    assert params["api_key"] == "sk_test"
    assert params["idempotency_key"] == "booking-b1-deposit"
    assert params["application_fee_amount"] == 400
    assert params["transfer_data"] == {"destination": "acct_1"}

    service.create_payment_intent(2000, {"booking_id": "b2"})
    assert "transfer_data" not in calls[1]
    assert "application_fee_amount" not in calls[1]


def test_stripe_errors_become_remote_errors(monkeypatch):
    def failing(**kwargs):
        raise stripe.StripeError("card network down")

    monkeypatch.setattr(stripe.PaymentIntent, "create", failing)

    with pytest.raises(RemoteOperationError):
        StripeService(api_key="sk_test").create_payment_intent(1000, {})


def test_retrieve_payment_intent(monkeypatch):
    calls = []

    def fake_retrieve(intent_id, **kwargs):
        calls.append((intent_id, kwargs))
        return {
            "id": intent_id,
            "status": "succeeded",
            "amount": 1000,
            "currency": "eur",
            "metadata": {"booking_id": "b1"},
        }

    monkeypatch.setattr(stripe.PaymentIntent, "retrieve", fake_retrieve)

    intent = StripeService(api_key="sk_test").retrieve_payment_intent("pi_1")

    assert intent == {"id": "pi_1", "status": "succeeded", "amount": 1000, "metadata": {"booking_id": "b1"}}
    assert calls == [("pi_1", {"api_key": "sk_test"})]


def test_retrieve_unknown_payment_intent(monkeypatch):
    def failing(intent_id, **kwargs):
        raise stripe.InvalidRequestError(f"No such payment_intent: '{intent_id}'", "id")

    monkeypatch.setattr(stripe.PaymentIntent, "retrieve", failing)

    with pytest.raises(RemoteOperationError):
        StripeService(api_key="sk_test").retrieve_payment_intent("pi_made_up")
