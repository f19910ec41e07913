"""Recover the principal from a (possibly expired) access token."""

from __future__ import annotations

import logging

import jwt

from tokenapi.services._shared.outcome import Failure, FailureKind, Ok, Outcome
from tokenapi.services.auth.claims import NAME_CLAIM, ROLE_CLAIM
from tokenapi.services.auth.dto import Principal, TokenSettings

logger = logging.getLogger(__name__)

INVALID_TOKEN_MESSAGE = "Invalid token."


def _invalid() -> Failure:
    return Failure(FailureKind.TOKEN_VALIDATION_FAILED, INVALID_TOKEN_MESSAGE)


def principal_from_expired_token(token: str | None, settings: TokenSettings) -> Outcome[Principal]:
    """
    Validate ``token`` ignoring its expiry and return the embedded identity.

    Signature, issuer and audience are enforced (``exp``, ``iss`` and ``aud``
    must be present). The header algorithm must be exactly ``HS256``; any
    other value, a differently-cased spelling included, is rejected before
    the signature is looked at.

    :returns: ``Ok(principal)`` or a ``TOKEN_VALIDATION_FAILED`` failure.
    """
    if not token:
        return _invalid()

    expected_alg = settings.signing_key.algorithm
    try:
        header = jwt.get_unverified_header(token)
    except jwt.InvalidTokenError as exc:
        logger.info("malformed token presented for refresh: %s", exc)
        return _invalid()

    alg = header.get("alg")
    if alg != expected_alg:
        logger.warning("token algorithm mismatch: got %r, expected %s", alg, expected_alg)
        return _invalid()

    try:
        payload = jwt.decode(
            token,
            settings.signing_key.key,
            algorithms=[expected_alg],
            audience=settings.audience,
            issuer=settings.issuer,
            options={
                "verify_signature": True,
                "verify_exp": False,
                "require": ["exp", "iss", "aud"],
            },
        )
    except jwt.InvalidTokenError as exc:
        logger.info("token rejected for refresh: %s", exc)
        return _invalid()

    name = payload.get(NAME_CLAIM)
    if not isinstance(name, str) or not name:
        logger.info("token rejected for refresh: missing %s claim", NAME_CLAIM)
        return _invalid()

    raw_roles = payload.get(ROLE_CLAIM, [])
    if isinstance(raw_roles, str):
        roles: tuple[str, ...] = (raw_roles,)
    elif isinstance(raw_roles, list):
        roles = tuple(str(r) for r in raw_roles)
    else:
        return _invalid()
    return Ok(Principal(name=name, roles=roles))
