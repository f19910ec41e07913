"""Flask CLI commands driving the token lifecycle from a terminal."""

from __future__ import annotations

import json
import logging
from typing import Any, NoReturn

import click
from flask import current_app
from flask.cli import with_appcontext
from flask_jwt_extended import decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt import PyJWTError

from tokenapi.core.extensions import db
from tokenapi.infra.sqlalchemy.sqlalchemy_user_store import SQLAlchemyUserStore
from tokenapi.services._shared.base import ServiceContext
from tokenapi.services._shared.outcome import Failure, FailureKind
from tokenapi.services.auth.dto import AuthenticationIn, RegistrationIn, TokenPairOut
from tokenapi.services.auth.principal import INVALID_TOKEN_MESSAGE
from tokenapi.services.auth.service import AuthenticationService
from tokenapi.uow import SQLAlchemyUnitOfWork

LOGGER = logging.getLogger(__name__)


def _service(ctx: click.Context) -> AuthenticationService:
    """Build the authentication service for the current application."""
    store = SQLAlchemyUserStore(
        password_min_length=int(current_app.config.get("PASSWORD_MIN_LENGTH", 6))
    )
    return AuthenticationService(
        user_store=store,
        settings=current_app.extensions["token_settings"],
        ctx=ServiceContext(request_id=ctx.obj.get("request_id")),
    )


def _echo_json(payload: dict[str, Any]) -> None:
    click.echo(json.dumps(payload, indent=2, sort_keys=True, default=str))


def _fail(ctx: click.Context, failure: Failure) -> NoReturn:
    """Print ``failure`` as problem JSON and exit with status 1."""
    _echo_json(failure.as_problem())
    ctx.exit(1)


@click.group("auth")
@click.option("--request-id", default=None, help="Correlation id attached to log records.")
@click.pass_context
def auth_cli(ctx: click.Context, request_id: str | None) -> None:
    """Issue, refresh and inspect access/refresh token pairs."""
    ctx.ensure_object(dict)
    ctx.obj["request_id"] = request_id


@auth_cli.command("init-db")
@click.option("--role", "roles", multiple=True, help="Role to create (repeatable).")
@with_appcontext
def init_db_command(roles: tuple[str, ...]) -> None:
    """Create the identity tables and, optionally, seed roles."""
    db.create_all()
    if roles:
        with SQLAlchemyUnitOfWork() as uow:
            for name in roles:
                uow.roles.ensure(name)
    LOGGER.info("identity schema ready", extra={"event": "init-db"})
    click.echo(f"Database initialised ({len(roles)} role(s) ensured).")


@auth_cli.command("register")
@click.option("--user-name", required=True)
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option("--first-name", default=None)
@click.option("--last-name", default=None)
@click.option("--email", default=None)
@click.option("--role", "roles", multiple=True, help="Existing role to assign (repeatable).")
@click.pass_context
@with_appcontext
def register_command(
    ctx: click.Context,
    user_name: str,
    password: str,
    first_name: str | None,
    last_name: str | None,
    email: str | None,
    roles: tuple[str, ...],
) -> None:
    """Create a user and assign its roles."""
    outcome = _service(ctx).register(
        RegistrationIn(
            user_name=user_name,
            password=password,
            first_name=first_name,
            last_name=last_name,
            email=email,
            roles=roles,
        )
    )
    if isinstance(outcome, Failure):
        _fail(ctx, outcome)
    _echo_json({"succeeded": True, "userName": user_name})


@auth_cli.command("login")
@click.option("--user-name", required=True)
@click.option("--password", prompt=True, hide_input=True)
@click.pass_context
@with_appcontext
def login_command(ctx: click.Context, user_name: str, password: str) -> None:
    """Authenticate and print a fresh token pair."""
    outcome = _service(ctx).login(AuthenticationIn(user_name=user_name, password=password))
    if isinstance(outcome, Failure):
        _fail(ctx, outcome)
    _echo_json(outcome.value.as_dict())


@auth_cli.command("refresh")
@click.option("--access-token", required=True)
@click.option("--refresh-token", required=True)
@click.pass_context
@with_appcontext
def refresh_command(ctx: click.Context, access_token: str, refresh_token: str) -> None:
    """Exchange an (expired) access token and its refresh token."""
    outcome = _service(ctx).refresh(
        TokenPairOut(access_token=access_token, refresh_token=refresh_token)
    )
    if isinstance(outcome, Failure):
        _fail(ctx, outcome)
    _echo_json(outcome.value.as_dict())


@auth_cli.command("verify")
@click.argument("token")
@click.option("--allow-expired", is_flag=True, help="Skip the expiry check.")
@click.pass_context
@with_appcontext
def verify_command(ctx: click.Context, token: str, allow_expired: bool) -> None:
    """Verify an access token with flask-jwt-extended and print its claims."""
    try:
        claims = decode_token(token, allow_expired=allow_expired)
    except (PyJWTError, JWTExtendedException) as exc:
        LOGGER.info("token verification failed: %s", type(exc).__name__)
        _fail(ctx, Failure(FailureKind.TOKEN_VALIDATION_FAILED, INVALID_TOKEN_MESSAGE))
    _echo_json(claims)
