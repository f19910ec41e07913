"""Global Flask extension instances and initialization helpers."""

from __future__ import annotations

from flask import Flask
from flask_jwt_extended import JWTManager
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import MetaData

# Global naming convention for all constraints
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

# Global singletons (import-safe)
db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
jwt = JWTManager()


def init_app(app: Flask) -> None:
    """Initialize SQLAlchemy and the JWT verifier extension.

    Parameters
    ----------
    app: flask.Flask
        Application used to bind extension instances. Token settings must
        already be registered under ``app.extensions["token_settings"]``;
        flask-jwt-extended is configured from them so host endpoints can
        verify the tokens issued here with ``@jwt_required()``.
    """
    db.init_app(app)

    # Ensure models are imported so metadata is complete before create_all()
    from tokenapi import models as _models  # noqa: F401
    from tokenapi.services.auth.claims import NAME_CLAIM

    settings = app.extensions["token_settings"]
    app.config["JWT_SECRET_KEY"] = settings.signing_key.secret
    app.config["JWT_ALGORITHM"] = settings.signing_key.algorithm
    app.config["JWT_DECODE_ALGORITHMS"] = [settings.signing_key.algorithm]
    app.config["JWT_DECODE_ISSUER"] = settings.issuer
    app.config["JWT_DECODE_AUDIENCE"] = settings.audience
    app.config["JWT_IDENTITY_CLAIM"] = NAME_CLAIM
    app.config.setdefault("JWT_TOKEN_LOCATION", ["headers"])
    jwt.init_app(app)
