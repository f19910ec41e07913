"""Symmetric signing key derived from the configured secret."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from tokenapi.services._shared.errors import ConfigurationError

HMAC_SHA256 = "HS256"


@dataclass(frozen=True, slots=True)
class SigningKey:
    """
    HMAC key shared by the issuer and the verifiers.

    :ivar secret: Configured secret; its UTF-8 bytes are the key material.
    :ivar algorithm: JWS algorithm, pinned to ``HS256``.
    """

    secret: str
    algorithm: str = HMAC_SHA256

    @classmethod
    def from_secret(cls, secret: Any) -> SigningKey:
        """
        Derive the key from ``JwtSettings.secretKey``.

        :raises ConfigurationError: If the secret is missing or blank.
        """
        if not isinstance(secret, str) or not secret.strip():
            raise ConfigurationError("secretKey", "a non-empty signing secret is required")
        return cls(secret=secret)

    @property
    def key(self) -> bytes:
        return self.secret.encode("utf-8")

    def __repr__(self) -> str:
        return f"SigningKey(algorithm={self.algorithm!r}, secret='***')"
