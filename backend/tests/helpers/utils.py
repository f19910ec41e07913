"""Tiny token helpers shared across test modules."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

SECRET = "s3cr3t-key-0123456789abcdef"
ISSUER = "app"
AUDIENCE = "app-users"


def decode_access(token: str, *, verify_exp: bool = True, **overrides: Any) -> dict[str, Any]:
    """Decode an access token with the test parameters.

    Parameters
    ----------
    token: str
        Compact JWS produced by the issuer.
    verify_exp: bool, optional
        Disable to inspect tokens whose lifetime already ran out.
    overrides:
        ``key``, ``issuer`` or ``audience`` to decode with instead.
    """
    return jwt.decode(
        token,
        overrides.get("key", SECRET),
        algorithms=["HS256"],
        issuer=overrides.get("issuer", ISSUER),
        audience=overrides.get("audience", AUDIENCE),
        options={"verify_exp": verify_exp},
    )


def forge_token(
    name: str = "alice",
    *,
    key: str = SECRET,
    algorithm: str = "HS256",
    issuer: str = ISSUER,
    audience: str = AUDIENCE,
    exp: datetime | None = None,
    **claims: Any,
) -> str:
    """Sign an arbitrary token, e.g. with a foreign key or algorithm."""
    payload: dict[str, Any] = {
        "unique_name": name,
        "iss": issuer,
        "aud": audience,
        "exp": int((exp or datetime.now(UTC) - timedelta(minutes=1)).timestamp()),
    }
    payload.update(claims)
    return jwt.encode(payload, key.encode("utf-8"), algorithm=algorithm)
