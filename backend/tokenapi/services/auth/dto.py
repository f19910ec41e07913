# tokenapi/services/auth/dto.py
from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

from tokenapi.services._shared.base import utc_now
from tokenapi.services._shared.errors import ConfigurationError
from tokenapi.services.auth.signing import SigningKey

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthenticationIn:
    """
    Input DTO for login.

    :param user_name: Login name.
    :type user_name: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    user_name: str
    password: str

    def __repr__(self) -> str:
        return f"AuthenticationIn(user_name={self.user_name!r}, password='***')"


@dataclass(frozen=True, slots=True)
class RegistrationIn:
    """
    Input DTO for registration.

    :param user_name: Login name (unique).
    :type user_name: str
    :param password: Raw password (the user store hashes it).
    :type password: str
    :param first_name: Optional first name.
    :param last_name: Optional last name.
    :param email: Optional email.
    :param roles: Role names to assign once the user exists.
    :type roles: tuple[str, ...]
    """

    user_name: str
    password: str
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    roles: tuple[str, ...] = field(default_factory=tuple)

    def __repr__(self) -> str:
        return (
            f"RegistrationIn(user_name={self.user_name!r}, password='***', "
            f"roles={self.roles!r})"
        )


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Access/refresh token pair. Also the input of the refresh flow, where
    both halves must be presented together.

    :param access_token: Encoded access JWT.
    :type access_token: str
    :param refresh_token: Opaque base64 refresh token.
    :type refresh_token: str
    """

    access_token: str
    refresh_token: str

    def as_dict(self) -> dict[str, str]:
        return {"accessToken": self.access_token, "refreshToken": self.refresh_token}


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Identity represented by an access token.

    :param name: Unique user name.
    :param roles: Role names, order irrelevant.
    """

    name: str
    roles: tuple[str, ...] = ()


# ------------------------------ Config DTO -------------------------------- #


def _parse_number(setting: str, raw: Any) -> float:
    try:
        value = float(str(raw).strip())
    except (TypeError, ValueError):
        raise ConfigurationError(setting, f"expected a number, got {raw!r}") from None
    if not math.isfinite(value) or value <= 0:
        raise ConfigurationError(setting, f"expected a positive number, got {raw!r}")
    return value


def _parse_lifetime(setting: str, raw: Any, unit: str) -> timedelta:
    value = _parse_number(setting, raw)
    try:
        lifetime = timedelta(**{unit: value})
        utc_now() + lifetime
    except OverflowError:
        raise ConfigurationError(setting, f"lifetime out of range, got {raw!r}") from None
    return lifetime


def _parse_flag(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().lower() in {"1", "true", "yes", "y", "on"}


@dataclass(frozen=True, slots=True)
class TokenSettings:
    """
    Parsed ``JwtSettings`` section.

    :param signing_key: Symmetric key derived from ``secretKey``.
    :param issuer: ``validIssuer``, embedded as ``iss`` and enforced on decode.
    :param audience: ``validAudience``, embedded as ``aud`` and enforced on decode.
    :param access_expires: Access-token lifetime (``expires`` minutes).
    :param refresh_expires: Refresh-token lifetime (``refreshTokenExpires`` hours).
    :param rotate_refresh_tokens: Issue a new refresh token value on refresh.
    """

    signing_key: SigningKey
    issuer: str
    audience: str
    access_expires: timedelta
    refresh_expires: timedelta = timedelta(hours=2)
    rotate_refresh_tokens: bool = False

    @classmethod
    def from_mapping(cls, section: Mapping[str, Any] | None) -> TokenSettings:
        """
        Build settings from the raw ``JwtSettings`` mapping.

        :param section: Mapping with ``secretKey``, ``validIssuer``,
                        ``validAudience``, ``expires`` and the optional
                        ``refreshTokenExpires`` / ``rotateRefreshTokens``.
        :raises ConfigurationError: On a missing secret, or an expiry that is not
                                    a positive number or does not fit a date.
        """
        if not section:
            raise ConfigurationError("secretKey", "JwtSettings section is missing")
        signing_key = SigningKey.from_secret(section.get("secretKey"))
        access_expires = _parse_lifetime("expires", section.get("expires"), "minutes")
        refresh_expires = _parse_lifetime(
            "refreshTokenExpires", section.get("refreshTokenExpires", 2), "hours"
        )
        issuer = str(section.get("validIssuer") or "").strip()
        audience = str(section.get("validAudience") or "").strip()
        if not issuer:
            raise ConfigurationError("validIssuer", "must not be empty")
        if not audience:
            raise ConfigurationError("validAudience", "must not be empty")
        return cls(
            signing_key=signing_key,
            issuer=issuer,
            audience=audience,
            access_expires=access_expires,
            refresh_expires=refresh_expires,
            rotate_refresh_tokens=_parse_flag(section.get("rotateRefreshTokens", False)),
        )
