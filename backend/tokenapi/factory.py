"""Application factory wiring configuration, logging, extensions and CLI."""

from __future__ import annotations

from flask import Flask

from tokenapi.core.config import JWT_SETTINGS_KEY, BaseConfig, get_config
from tokenapi.core.logger import configure_logging
from tokenapi.services.auth.dto import TokenSettings


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application.

    The ``JwtSettings`` section is parsed eagerly: a missing secret or a
    non-numeric expiry raises :class:`~tokenapi.services._shared.errors.ConfigurationError`
    here instead of on the first login.
    """

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    app.extensions["token_settings"] = TokenSettings.from_mapping(app.config.get(JWT_SETTINGS_KEY))

    from tokenapi.core import extensions

    extensions.init_app(app)

    from tokenapi import cli as app_cli

    app_cli.init_app(app)

    return app
