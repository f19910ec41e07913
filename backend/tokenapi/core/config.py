"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

# Config key holding the "JwtSettings" section
JWT_SETTINGS_KEY: Final[str] = "JWT_SETTINGS"


# Load .env in development (no-op when the file is missing)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def jwt_settings_from_env() -> dict[str, str | bool]:
    """Build the ``JwtSettings`` section from environment variables.

    Values are kept as raw strings (``expires`` included); parsing and
    validation happen when the application builds its token settings, so a
    bad value fails at start-up rather than at first use.

    Returns
    -------
    dict[str, str | bool]
        Mapping with ``secretKey``, ``validIssuer``, ``validAudience``,
        ``expires``, ``refreshTokenExpires`` and ``rotateRefreshTokens``.
    """
    return {
        "secretKey": os.getenv("JWT_SECRET_KEY", ""),
        "validIssuer": os.getenv("JWT_VALID_ISSUER", "tokenapi"),
        "validAudience": os.getenv("JWT_VALID_AUDIENCE", "tokenapi-clients"),
        "expires": os.getenv("JWT_EXPIRES", "60"),
        "refreshTokenExpires": os.getenv("JWT_REFRESH_EXPIRES_HOURS", "2"),
        "rotateRefreshTokens": env_bool("JWT_ROTATE_REFRESH_TOKENS", False),
    }


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    JWT_SETTINGS: dict
        The ``JwtSettings`` section: signing secret, issuer, audience and
        access-token lifetime in minutes (numeric string).
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    SQLALCHEMY_TRACK_MODIFICATIONS: bool
        Disabled to avoid extra overhead from the event system.
    SQLALCHEMY_ECHO: bool
        When ``True`` SQLAlchemy logs SQL statements for debugging.
    PASSWORD_MIN_LENGTH: int
        Minimum password length enforced by the user store on creation.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    DEBUG: bool
        Toggles Flask debug mode.
    TESTING: bool
        Enables Flask testing mode when ``True``.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    # Secrets / security
    JWT_SETTINGS = jwt_settings_from_env()
    PASSWORD_MIN_LENGTH = int(os.getenv("PASSWORD_MIN_LENGTH", "6"))

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode by default and honors ``SQLALCHEMY_ECHO`` for verbose
    SQL logging when requested.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Ships a fixed, non-secret signing key so the app can boot in CI.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    JWT_SETTINGS = {
        **jwt_settings_from_env(),
        "secretKey": "testing-only-signing-secret-0123456789",
        "validIssuer": "app",
        "validAudience": "app-users",
        "expires": "5",
    }


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Keeps debug and SQL echoing disabled. ``JWT_SECRET_KEY`` has no default:
    the application refuses to start without it.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class to pass to :meth:`flask.Config.from_object`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)
