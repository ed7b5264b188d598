# jeevanam/services/errors.py
from __future__ import annotations

from typing import Tuple

from jeevanam.domain.errors import BackendError, ErrorKind

# Checked in this order; stopped-service markers overlap with generic text.
_SERVICE_UNAVAILABLE = ("ic0508", "ic0503", "service temporarily unavailable", "not running")
_NETWORK = ("network", "timeout", "fetch", "connection", "econnrefused", "failed to fetch")
_AUTH = ("admin not set up", "only the admin", "authentication", "unauthorized")
_VALIDATION = ("already exists", "not found", "cannot be negative", "cannot be empty", "invalid")
_INTERNAL_TOKENS = ("actor", "undefined", "null")

GENERIC_MESSAGE = "An unexpected error occurred. Please try again."


def error_text(error: BaseException | str | None) -> str:
    if error is None:
        return ""
    if isinstance(error, BackendError):
        return error.message or ""
    return str(error)


def _has_any(text: str, needles: Tuple[str, ...]) -> bool:
    return any(n in text for n in needles)


def classify_message(message: str) -> ErrorKind:
    t = (message or "").lower()
    if _has_any(t, _SERVICE_UNAVAILABLE) or ("canister" in t and "stopped" in t):
        return ErrorKind.SERVICE_UNAVAILABLE
    if _has_any(t, _NETWORK):
        return ErrorKind.NETWORK
    if _has_any(t, _AUTH):
        return ErrorKind.AUTH
    if _has_any(t, _VALIDATION):
        return ErrorKind.VALIDATION
    return ErrorKind.UNKNOWN


def classify(error: BaseException | str | None) -> ErrorKind:
    """Typed kind from the transport when present, message sniffing otherwise."""
    if isinstance(error, BackendError) and error.kind is not None:
        return error.kind
    return classify_message(error_text(error))


def is_connectivity_error(error: BaseException | str | None) -> bool:
    return classify(error) in (ErrorKind.SERVICE_UNAVAILABLE, ErrorKind.NETWORK)


def user_message(error: BaseException | str | None) -> str:
    text = error_text(error)
    if not text and not isinstance(error, BackendError):
        return "An unexpected error occurred"

    kind = classify(error)
    t = text.lower()
    if kind is ErrorKind.SERVICE_UNAVAILABLE:
        return ("Service temporarily unavailable. The backend is currently stopped. "
                "Please wait a moment and try again.")
    if kind is ErrorKind.NETWORK:
        return "Connection error. Please check your internet connection and try again."
    if kind is ErrorKind.AUTH:
        return ("Authentication error: Admin access not properly configured. "
                "Please log out and log back in.")

    if "already exists" in t:
        return "This item already exists"
    if "not found" in t:
        return "Item not found"
    if "cannot be negative" in t:
        return "Value cannot be negative"
    if "cannot be empty" in t:
        return "Value cannot be empty"
    if "reject" in t:
        return "Request was rejected by the service. Please try again."

    if text and not _has_any(t, _INTERNAL_TOKENS):
        return text
    return GENERIC_MESSAGE


def recovery_instructions(error: BaseException | str | None) -> str:
    kind = classify(error)
    if kind is ErrorKind.SERVICE_UNAVAILABLE:
        return ("The service is temporarily unavailable. It will automatically retry. "
                "You can also try again in a few moments.")
    if kind is ErrorKind.NETWORK:
        return ("Please check your internet connection and try again. "
                "If the problem persists, the service may be temporarily down.")
    if kind is ErrorKind.AUTH:
        return "Please log out and log back in to refresh your authentication."
    return "Please try again. If the problem persists, contact support."
