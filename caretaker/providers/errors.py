"""Provider errors and fallback classification."""

from __future__ import annotations

import httpx
import ollama

from caretaker.constants import CaretakerConstants

FallbackReason = CaretakerConstants.FallbackReason


class ProviderError(Exception):
    """A backend call failed.

    ``reason`` is set when trying another provider makes sense (rate limit,
    timeout, auth, upstream 5xx, network) and None otherwise.
    """

    def __init__(
        self,
        provider: str,
        message: str,
        status_code: int | None = None,
        reason: FallbackReason | None = None,
    ):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.status_code = status_code
        self.reason = reason


def reason_for_status(status_code: int | None) -> FallbackReason | None:
    """Fallback reason for an HTTP status, or None if retrying elsewhere won't help."""
    if status_code is None:
        return None
    if status_code == CaretakerConstants.HTTP_STATUS_RATE_LIMIT:
        return FallbackReason.RATE_LIMIT
    if status_code in CaretakerConstants.HTTP_STATUS_AUTH:
        return FallbackReason.AUTH
    if status_code >= 500:
        return FallbackReason.SERVER_ERROR
    return None


def classify_error(error: BaseException) -> FallbackReason | None:
    """Map any exception raised around a backend call to a fallback reason."""
    if isinstance(error, ProviderError):
        return error.reason
    if isinstance(error, TimeoutError | httpx.TimeoutException):
        return FallbackReason.TIMEOUT
    if isinstance(error, httpx.HTTPStatusError):
        return reason_for_status(error.response.status_code)
    if isinstance(error, ollama.ResponseError):
        return reason_for_status(error.status_code)
    if isinstance(error, httpx.TransportError | ConnectionError):
        return FallbackReason.NETWORK
    return None


def wrap_error(provider: str, error: Exception) -> ProviderError:
    """Normalise an SDK or HTTP exception into a ProviderError."""
    if isinstance(error, ProviderError):
        return error
    status_code = None
    if isinstance(error, httpx.HTTPStatusError):
        status_code = error.response.status_code
    elif isinstance(error, ollama.ResponseError):
        status_code = error.status_code
    return ProviderError(
        provider, str(error) or type(error).__name__, status_code, classify_error(error)
    )
