"""Access-token construction and signing."""

from __future__ import annotations

from datetime import datetime, timedelta

import jwt

from tokenapi.services.auth.claims import Claim, claims_to_payload
from tokenapi.services.auth.signing import SigningKey


def issue_access_token(
    claims: list[Claim],
    signing_key: SigningKey,
    *,
    issuer: str,
    audience: str,
    expires: timedelta,
    now: datetime,
) -> str:
    """
    Build and sign a time-bounded access token.

    :param claims: Identity claims (name first, then roles).
    :param signing_key: HMAC key; the algorithm is always ``HS256``.
    :param issuer: Value of the ``iss`` claim.
    :param audience: Value of the ``aud`` claim.
    :param expires: Lifetime added to ``now`` for the ``exp`` claim.
    :param now: Issuance time (aware UTC).
    :returns: Compact JWS string.
    """
    payload = claims_to_payload(claims)
    payload.update(
        {
            "exp": int((now + expires).timestamp()),
            "iss": issuer,
            "aud": audience,
        }
    )
    token = jwt.encode(
        payload,
        signing_key.key,
        algorithm=signing_key.algorithm,
        headers={"typ": "JWT"},
    )
    if isinstance(token, bytes):
        token = token.decode("utf-8")
    return token
