"""Tests for configuration loading and JwtSettings parsing."""

from __future__ import annotations

from datetime import timedelta

import pytest
from tokenapi.core import config
from tokenapi.factory import create_app
from tokenapi.services._shared.errors import ConfigurationError, ServiceError
from tokenapi.services.auth.dto import TokenSettings

VALID = {
    "secretKey": "s3cr3t-key-0123456789abcdef",
    "validIssuer": "app",
    "validAudience": "app-users",
    "expires": "5",
}


class TestTokenSettings:
    def test_parses_minutes_and_hours(self):
        settings = TokenSettings.from_mapping({**VALID, "expires": "1.5", "refreshTokenExpires": "24"})

        assert settings.access_expires == timedelta(minutes=1.5)
        assert settings.refresh_expires == timedelta(hours=24)
        assert settings.issuer == "app"
        assert settings.audience == "app-users"

    def test_defaults(self):
        settings = TokenSettings.from_mapping(VALID)
        assert settings.refresh_expires == timedelta(hours=2)
        assert settings.rotate_refresh_tokens is False

    @pytest.mark.parametrize("flag", [True, "true", "1", "yes"])
    def test_rotation_flag(self, flag):
        assert TokenSettings.from_mapping({**VALID, "rotateRefreshTokens": flag}).rotate_refresh_tokens

    @pytest.mark.parametrize(
        "override,setting",
        [
            ({"secretKey": ""}, "secretKey"),
            ({"secretKey": None}, "secretKey"),
            ({"expires": "five"}, "expires"),
            ({"expires": None}, "expires"),
            ({"expires": "0"}, "expires"),
            ({"expires": "nan"}, "expires"),
            ({"expires": "1e10"}, "expires"),
            ({"refreshTokenExpires": "-1"}, "refreshTokenExpires"),
            ({"refreshTokenExpires": "1e12"}, "refreshTokenExpires"),
            ({"validIssuer": " "}, "validIssuer"),
            ({"validAudience": ""}, "validAudience"),
        ],
    )
    def test_invalid_values_raise(self, override, setting):
        with pytest.raises(ConfigurationError) as excinfo:
            TokenSettings.from_mapping({**VALID, **override})
        assert excinfo.value.setting == setting
        assert isinstance(excinfo.value, ServiceError)

    def test_missing_section(self):
        with pytest.raises(ConfigurationError):
            TokenSettings.from_mapping(None)


class TestEnvironment:
    def test_settings_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET_KEY", "env-secret")
        monkeypatch.setenv("JWT_VALID_ISSUER", "env-issuer")
        monkeypatch.setenv("JWT_EXPIRES", "15")
        monkeypatch.setenv("JWT_ROTATE_REFRESH_TOKENS", "on")

        section = config.jwt_settings_from_env()

        assert section["secretKey"] == "env-secret"
        assert section["validIssuer"] == "env-issuer"
        assert section["expires"] == "15"
        assert section["rotateRefreshTokens"] is True

    def test_get_config_follows_app_env(self, monkeypatch):
        monkeypatch.setenv("APP_ENV", "testing")
        assert config.get_config() is config.TestingConfig
        monkeypatch.setenv("APP_ENV", "unknown")
        assert config.get_config() is config.DevelopmentConfig

    def test_config_map_names(self):
        assert set(config.CONFIG_MAP) == {"development", "testing", "production"}


class TestFactoryFailsFast:
    def test_missing_secret_aborts_start_up(self):
        class NoSecret(config.TestingConfig):
            JWT_SETTINGS = {**VALID, "secretKey": ""}

        with pytest.raises(ConfigurationError, match="secretKey"):
            create_app(NoSecret)

    def test_non_numeric_expiry_aborts_start_up(self):
        class BadExpiry(config.TestingConfig):
            JWT_SETTINGS = {**VALID, "expires": "soon"}

        with pytest.raises(ConfigurationError, match="expires"):
            create_app(BadExpiry)

    def test_token_settings_exposed_on_the_app(self, app):
        assert isinstance(app.extensions["token_settings"], TokenSettings)
        assert app.config["JWT_IDENTITY_CLAIM"] == "unique_name"
        assert app.config["JWT_DECODE_AUDIENCE"] == "app-users"
        # Only JwtSettings.secretKey signs tokens; Flask's own key stays unset
        assert app.config["SECRET_KEY"] is None


def test_out_of_range_expiry_aborts_start_up_instead_of_login():
    class HugeExpiry(config.TestingConfig):
        JWT_SETTINGS = {**VALID, "expires": "1e10"}

    with pytest.raises(ConfigurationError, match="out of range"):
        create_app(HugeExpiry)
