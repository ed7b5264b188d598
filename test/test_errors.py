import pytest

from jeevanam.domain.errors import BackendError, ErrorKind
from jeevanam.services.errors import GENERIC_MESSAGE, classify, recovery_instructions, user_message
from jeevanam.services.retry import RetryPolicy


@pytest.mark.parametrize(
    "message,kind",
    [
        ("Reject text: IC0508: Canister abc is stopped", ErrorKind.SERVICE_UNAVAILABLE),
        ("ic0503 trapped", ErrorKind.SERVICE_UNAVAILABLE),
        ("the CANISTER has been Stopped", ErrorKind.SERVICE_UNAVAILABLE),
        ("Service temporarily unavailable", ErrorKind.SERVICE_UNAVAILABLE),
        ("canister is not running", ErrorKind.SERVICE_UNAVAILABLE),
        ("Failed to fetch", ErrorKind.NETWORK),
        ("request timeout", ErrorKind.NETWORK),
        ("ECONNREFUSED 127.0.0.1", ErrorKind.NETWORK),
        ("Unauthorized: Admin not set up", ErrorKind.AUTH),
        ("Only the admin can do this", ErrorKind.AUTH),
        ("Raw material 'Rice' already exists", ErrorKind.VALIDATION),
        ("Recipe not found: Dosa", ErrorKind.VALIDATION),
        ("Price cannot be negative", ErrorKind.VALIDATION),
        ("Invalid unit", ErrorKind.VALIDATION),
        ("something odd happened", ErrorKind.UNKNOWN),
    ],
)
def test_classify_by_message(message, kind):
    assert classify(BackendError(message)) is kind
    assert classify(RuntimeError(message)) is kind


def test_stopped_service_wins_over_overlapping_text():
    # "not found" would be validation, but the stopped marker is checked first
    assert classify(BackendError("IC0508 canister not found or stopped")) is ErrorKind.SERVICE_UNAVAILABLE


def test_transport_kind_beats_message():
    err = BackendError("already exists", kind=ErrorKind.NETWORK)
    assert classify(err) is ErrorKind.NETWORK


def test_validation_never_retried():
    policy = RetryPolicy()
    err = BackendError("Raw material already exists")
    assert all(not policy.should_retry(err, n) for n in range(0, 10))


def test_user_messages():
    assert user_message(BackendError("IC0508")).startswith("Service temporarily unavailable")
    assert user_message(BackendError("x already exists")) == "This item already exists"
    assert user_message(BackendError("Item not found")) == "Item not found"
    assert user_message(BackendError("Call was rejected")) == "Request was rejected by the service. Please try again."
    assert user_message(ValueError("Portion too large")) == "Portion too large"
    assert user_message(TypeError("Cannot read properties of undefined")) == GENERIC_MESSAGE
    assert user_message(RuntimeError("actor method failed")) == GENERIC_MESSAGE
    assert user_message(RuntimeError("")) == "An unexpected error occurred"


def test_recovery_instructions_follow_kind():
    assert "automatically retry" in recovery_instructions(BackendError("IC0508"))
    assert "log back in" in recovery_instructions(BackendError("unauthorized"))
    assert recovery_instructions(BackendError("boom")).startswith("Please try again")
