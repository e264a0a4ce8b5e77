"""Tests for error classification and secret storage."""

import base64

import httpx
import ollama
import pytest

from caretaker.constants import CaretakerConstants
from caretaker.providers import ProviderError, SecretDecryptionError, SecretStore, classify_error
from caretaker.providers.errors import wrap_error

FallbackReason = CaretakerConstants.FallbackReason


def status_error(status_code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "https://api.example.com/v1/messages")
    response = httpx.Response(status_code, request=request)
    return httpx.HTTPStatusError("failed", request=request, response=response)


@pytest.mark.parametrize(
    "error, expected",
    [
        (status_error(429), FallbackReason.RATE_LIMIT),
        (status_error(401), FallbackReason.AUTH),
        (status_error(403), FallbackReason.AUTH),
        (status_error(500), FallbackReason.SERVER_ERROR),
        (status_error(503), FallbackReason.SERVER_ERROR),
        (status_error(400), None),
        (status_error(404), None),
        (httpx.ReadTimeout("slow"), FallbackReason.TIMEOUT),
        (TimeoutError(), FallbackReason.TIMEOUT),
        (httpx.ConnectError("refused"), FallbackReason.NETWORK),
        (ConnectionResetError(), FallbackReason.NETWORK),
        (ollama.ResponseError("overloaded", 503), FallbackReason.SERVER_ERROR),
        (ollama.ResponseError("model not found", 404), None),
        (ValueError("bad json"), None),
    ],
)
def test_classify_error(error, expected):
    assert classify_error(error) == expected


def test_wrap_error_keeps_status_and_reason():
    wrapped = wrap_error("claude", status_error(429))

    assert isinstance(wrapped, ProviderError)
    assert wrapped.provider == "claude"
    assert wrapped.status_code == 429
    assert wrapped.reason == FallbackReason.RATE_LIMIT
    assert classify_error(wrapped) == FallbackReason.RATE_LIMIT


def test_wrap_error_passes_provider_errors_through():
    original = ProviderError("gemini", "boom")

    assert wrap_error("claude", original) is original


def test_secret_round_trip():
    store = SecretStore.from_base64(SecretStore.generate_key())

    token = store.encrypt("sk-test-123")

    assert token != "sk-test-123"
    assert store.decrypt(token) == "sk-test-123"
    assert store.encrypt("sk-test-123") != token


def test_tampered_secret_is_rejected():
    store = SecretStore.from_base64(SecretStore.generate_key())
    raw = bytearray(base64.b64decode(store.encrypt("sk-test-123")))
    raw[-1] ^= 0x01

    with pytest.raises(SecretDecryptionError):
        store.decrypt(base64.b64encode(bytes(raw)).decode())


def test_secret_from_other_key_is_rejected():
    token = SecretStore.from_base64(SecretStore.generate_key()).encrypt("sk-test-123")

    with pytest.raises(SecretDecryptionError):
        SecretStore.from_base64(SecretStore.generate_key()).decrypt(token)


@pytest.mark.parametrize("token", ["not base64!!", base64.b64encode(b"short").decode()])
def test_malformed_secret_is_rejected(token):
    store = SecretStore.from_base64(SecretStore.generate_key())

    with pytest.raises(SecretDecryptionError):
        store.decrypt(token)


@pytest.mark.parametrize("key", ["not base64!!", base64.b64encode(b"too short").decode()])
def test_bad_credential_key(key):
    with pytest.raises(ValueError):
        SecretStore.from_base64(key)
