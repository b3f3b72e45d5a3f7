from salonbook.errors import (
    InvalidStatusTransitionError,
    NotFoundError,
    PaymentCreationError,
    PaymentVerificationError,
    RemoteOperationError,
)


def test_payment_creation_is_a_remote_failure():
    assert issubclass(PaymentCreationError, RemoteOperationError)
    assert not issubclass(PaymentVerificationError, RemoteOperationError)


def test_error_messages():
    error = NotFoundError("Booking", "b1")
    assert (error.resource, error.resource_id) == ("Booking", "b1")
    assert str(error) == "Booking b1 not found"

    error = InvalidStatusTransitionError("completed", "pending")
    assert str(error) == "Cannot change booking status from 'completed' to 'pending'"
    assert str(PaymentVerificationError("PaymentIntent pi_1 is processing")) == "PaymentIntent pi_1 is processing"
