"""Opaque refresh-token generation."""

from __future__ import annotations

import base64
import secrets

REFRESH_TOKEN_BYTES = 32


def generate_refresh_token() -> str:
    """Return 32 bytes from the OS CSPRNG, standard base64 encoded."""
    return base64.b64encode(secrets.token_bytes(REFRESH_TOKEN_BYTES)).decode("ascii")
