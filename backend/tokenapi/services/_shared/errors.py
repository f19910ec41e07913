"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask, HTTP, or SQLAlchemy directly.

Only conditions that callers cannot recover from per request are raised.
Expected rejections (bad credentials, bad tokens, refused registrations)
are returned as :class:`tokenapi.services._shared.outcome.Failure` values.
"""

from __future__ import annotations

# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - They can be safely raised from repositories or domain logic.
    """

    pass


# --------------------------------------------------------------------------- #
# Specific domain-level errors
# --------------------------------------------------------------------------- #


class ConfigurationError(ServiceError):
    """
    Raised when the ``JwtSettings`` section is missing or invalid.

    Fatal at start-up: the application factory builds the token settings
    eagerly so a missing secret or a non-numeric expiry never reaches a
    request.
    """

    def __init__(self, setting: str, detail: str) -> None:
        super().__init__(f"Invalid JwtSettings.{setting}: {detail}")
        self.setting = setting
        self.detail = detail
