"""AES-256-GCM encryption for stored provider API keys.

Token format: base64(nonce || ciphertext), with a 12-byte random nonce.
"""

from __future__ import annotations

import base64
import binascii
import logging
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

logger = logging.getLogger(__name__)

_KEY_LENGTH = 32
_NONCE_LENGTH = 12
_TAG_LENGTH = 16


class SecretDecryptionError(Exception):
    """Raised when a stored secret cannot be decrypted for any reason."""


class SecretStore:
    """Encrypts and decrypts provider secrets with one AES-256 key."""

    def __init__(self, key: bytes):
        if len(key) != _KEY_LENGTH:
            raise ValueError(
                f"Credential key must be exactly {_KEY_LENGTH} bytes (got {len(key)})"
            )
        self._aesgcm = AESGCM(key)

    @classmethod
    def from_base64(cls, encoded_key: str) -> SecretStore:
        """Build from the base64 key in CREDENTIAL_KEY."""
        try:
            key = base64.b64decode(encoded_key.strip(), validate=True)
        except binascii.Error as e:
            raise ValueError(f"CREDENTIAL_KEY contains invalid base64: {e}") from e
        return cls(key)

    @staticmethod
    def generate_key() -> str:
        """A fresh random key, base64-encoded for the environment."""
        return base64.b64encode(os.urandom(_KEY_LENGTH)).decode()

    def encrypt(self, plaintext: str) -> str:
        nonce = os.urandom(_NONCE_LENGTH)
        ciphertext = self._aesgcm.encrypt(nonce, plaintext.encode(), None)
        return base64.b64encode(nonce + ciphertext).decode()

    def decrypt(self, token: str) -> str:
        """
        Decrypt a token produced by ``encrypt``.

        Raises:
            SecretDecryptionError: If the token is malformed, tampered with,
                or was encrypted under a different key
        """
        try:
            raw = base64.b64decode(token, validate=True)
        except (binascii.Error, ValueError) as e:
            raise SecretDecryptionError("Secret is not valid base64") from e

        if len(raw) < _NONCE_LENGTH + _TAG_LENGTH:
            raise SecretDecryptionError("Secret is too short to be a valid token")

        nonce, ciphertext = raw[:_NONCE_LENGTH], raw[_NONCE_LENGTH:]
        try:
            return self._aesgcm.decrypt(nonce, ciphertext, None).decode()
        except (InvalidTag, UnicodeDecodeError) as e:
            raise SecretDecryptionError("Secret failed authentication") from e
