# tokenapi/services/auth/service.py
from __future__ import annotations

import hmac
import logging
from dataclasses import replace

from tokenapi.core.logger import bind_request_id
from tokenapi.services._shared.base import BaseService, Clock, ServiceContext
from tokenapi.services._shared.outcome import Failure, FailureKind, Ok, Outcome
from tokenapi.services._shared.ports import StoreResult, UserRecord, UserStore
from tokenapi.services.auth.claims import build_claims
from tokenapi.services.auth.dto import (
    AuthenticationIn,
    RegistrationIn,
    TokenPairOut,
    TokenSettings,
)
from tokenapi.services.auth.issuer import issue_access_token
from tokenapi.services.auth.principal import principal_from_expired_token
from tokenapi.services.auth.refresh import generate_refresh_token
from tokenapi.services.auth.validator import AUTHENTICATION_FAILED_MESSAGE, validate_user

logger = logging.getLogger(__name__)

INVALID_REFRESH_MESSAGE = "Invalid client request. The token pair has some invalid values."
REGISTRATION_FAILED_MESSAGE = "Registration failed."


class AuthenticationService(BaseService):
    """
    Token lifecycle service (login / registration / refresh).

    Issues HS256 access tokens and opaque refresh tokens, and persists the
    refresh-session state (token + expiry) on the user through the
    :class:`~tokenapi.services._shared.ports.UserStore` port.

    Rejections are returned as :class:`Failure` values; only unexpected
    faults (e.g. the database being unreachable) raise.
    """

    def __init__(
        self,
        *,
        user_store: UserStore,
        settings: TokenSettings,
        ctx: ServiceContext | None = None,
        clock: Clock | None = None,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param user_store: Identity store (find, verify, roles, refresh state).
        :param settings: Parsed ``JwtSettings`` (key, issuer, audience, lifetimes).
        :param ctx: Optional call-scoped context (correlation id).
        :param clock: Optional clock override, mainly for tests.
        """
        super().__init__(ctx=ctx, clock=clock)
        self.users = user_store
        self.settings = settings

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: AuthenticationIn) -> Outcome[TokenPairOut]:
        """
        Authenticate credentials and issue a fresh token pair.

        :param dto: Login input.
        :returns: ``Ok(TokenPairOut)`` or an ``AUTHENTICATION_FAILED`` failure
                  that does not reveal whether the user exists.
        """
        with bind_request_id(self.ctx.request_id):
            validated = validate_user(self.users, dto.user_name, dto.password)
            if isinstance(validated, Failure):
                logger.info(
                    "login rejected",
                    extra={
                        "event": "login",
                        "user_name": dto.user_name,
                        "outcome": "fail",
                        "failure_kind": validated.kind.value,
                    },
                )
                return validated

            result = self.create_token(validated.value, populate_exp=True)
            logger.info(
                "login %s",
                "succeeded" if result.ok else "rejected",
                extra={
                    "event": "login",
                    "user_name": validated.value.user_name,
                    "outcome": "success" if result.ok else "fail",
                },
            )
            return result

    # ------------------------------------------------------------------ #
    # Registration
    # ------------------------------------------------------------------ #

    def register(self, dto: RegistrationIn) -> Outcome[StoreResult]:
        """
        Create a user and assign its roles.

        Requested roles are checked before anything is written, so a
        rejected registration never leaves a user behind.

        :param dto: Registration input.
        :returns: ``Ok(StoreResult)`` or a ``REGISTRATION_FAILED`` failure
                  carrying the store's error details unchanged.
        """
        with bind_request_id(self.ctx.request_id):
            record = UserRecord(
                user_name=dto.user_name,
                first_name=dto.first_name,
                last_name=dto.last_name,
                email=dto.email,
            )
            roles = tuple(dict.fromkeys(dto.roles))
            if roles:
                known = self.users.validate_roles(roles)
                if not known.succeeded:
                    return self._registration_failed(dto.user_name, known)

            created = self.users.create(record, dto.password)
            if not created.succeeded:
                return self._registration_failed(dto.user_name, created)

            if roles:
                user = self.users.find_by_name(dto.user_name) or record
                assigned = self.users.add_to_roles(user, roles)
                if not assigned.succeeded:
                    return self._registration_failed(dto.user_name, assigned)

            logger.info(
                "user registered",
                extra={"event": "register", "user_name": dto.user_name, "outcome": "success"},
            )
            return Ok(created)

    # ------------------------------------------------------------------ #
    # Refresh
    # ------------------------------------------------------------------ #

    def refresh(self, dto: TokenPairOut) -> Outcome[TokenPairOut]:
        """
        Exchange an (expired) access token plus its refresh token for a new
        access token.

        Reissue requires the user to exist, the stored refresh token to equal
        the presented one and the stored expiry to lie strictly in the future.
        Every failing condition collapses into one ``INVALID_REFRESH_REQUEST``.
        The refresh expiry is not re-populated on this path.
        """
        with bind_request_id(self.ctx.request_id):
            extracted = principal_from_expired_token(dto.access_token, self.settings)
            if isinstance(extracted, Failure):
                return extracted

            user = self.users.find_by_name(extracted.value.name)
            if user is None or not self._refresh_state_matches(user, dto.refresh_token):
                logger.info(
                    "refresh rejected",
                    extra={
                        "event": "refresh",
                        "user_name": extracted.value.name,
                        "outcome": "fail",
                        "failure_kind": FailureKind.INVALID_REFRESH_REQUEST.value,
                    },
                )
                return Failure(FailureKind.INVALID_REFRESH_REQUEST, INVALID_REFRESH_MESSAGE)

            result = self.create_token(
                user, populate_exp=False, expected_stamp=user.concurrency_stamp
            )
            logger.info(
                "refresh %s",
                "succeeded" if result.ok else "rejected",
                extra={
                    "event": "refresh",
                    "user_name": user.user_name,
                    "outcome": "success" if result.ok else "fail",
                },
            )
            return result

    # ------------------------------------------------------------------ #
    # Issuance
    # ------------------------------------------------------------------ #

    def create_token(
        self,
        user: UserRecord,
        *,
        populate_exp: bool,
        expected_stamp: str | None = None,
    ) -> Outcome[TokenPairOut]:
        """
        Issue an access token for ``user`` and write its refresh state back.

        :param user: Resolved principal user.
        :param populate_exp: Generate a new refresh token and set its expiry to
                             ``now + refresh lifetime`` (login). When ``False``
                             (refresh) the stored expiry is kept and the stored
                             token is reused unless rotation is enabled.
        :param expected_stamp: Concurrency stamp observed by the caller; the
                               write is skipped if the user changed since.
        :returns: ``Ok(TokenPairOut)``, or a failure when the write-back lost a
                  race (refresh) or the user vanished (login).
        """
        now = self.now_utc()
        claims = build_claims(user, self.users)
        access_token = issue_access_token(
            claims,
            self.settings.signing_key,
            issuer=self.settings.issuer,
            audience=self.settings.audience,
            expires=self.settings.access_expires,
            now=now,
        )

        if populate_exp or self.settings.rotate_refresh_tokens or not user.refresh_token:
            refresh_token = generate_refresh_token()
        else:
            refresh_token = user.refresh_token

        expiry = (
            now + self.settings.refresh_expires if populate_exp else user.refresh_token_expiry_time
        )

        saved = self.users.update(
            replace(user, refresh_token=refresh_token, refresh_token_expiry_time=expiry),
            expected_stamp=expected_stamp,
        )
        if not saved.succeeded:
            codes = ", ".join(e.code for e in saved.errors)
            logger.warning("refresh state write-back refused (%s)", codes)
            if expected_stamp is not None:
                return Failure(FailureKind.INVALID_REFRESH_REQUEST, INVALID_REFRESH_MESSAGE)
            return Failure(FailureKind.AUTHENTICATION_FAILED, AUTHENTICATION_FAILED_MESSAGE)

        return Ok(TokenPairOut(access_token=access_token, refresh_token=refresh_token))

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _refresh_state_matches(self, user: UserRecord, presented: str | None) -> bool:
        """Check stored refresh token and expiry against the presented token."""
        if not user.refresh_token or not presented:
            return False
        if not hmac.compare_digest(user.refresh_token.encode(), presented.encode()):
            return False
        expiry = user.refresh_token_expiry_time
        return expiry is not None and expiry > self.now_utc()

    @staticmethod
    def _registration_failed(user_name: str, result: StoreResult) -> Failure:
        logger.info(
            "registration rejected (%s)",
            ", ".join(e.code for e in result.errors),
            extra={
                "event": "register",
                "user_name": user_name,
                "outcome": "fail",
                "failure_kind": FailureKind.REGISTRATION_FAILED.value,
            },
        )
        return Failure(
            FailureKind.REGISTRATION_FAILED,
            REGISTRATION_FAILED_MESSAGE,
            details=tuple(e.as_dict() for e in result.errors),
        )
