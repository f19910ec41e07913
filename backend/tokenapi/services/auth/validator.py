"""Username/password check against the user store; fails closed."""

from __future__ import annotations

import logging

from tokenapi.services._shared.outcome import Failure, FailureKind, Ok, Outcome
from tokenapi.services._shared.ports import UserRecord, UserStore

logger = logging.getLogger(__name__)

# One message for every rejection so callers cannot tell which check failed
AUTHENTICATION_FAILED_MESSAGE = "Authentication failed. Wrong username or password."


def validate_user(store: UserStore, user_name: str | None, password: str | None) -> Outcome[UserRecord]:
    """
    Resolve the user behind a username/password pair.

    :returns: ``Ok(user)`` when the credentials match, otherwise an
              ``AUTHENTICATION_FAILED`` failure.
    """
    failure = Failure(FailureKind.AUTHENTICATION_FAILED, AUTHENTICATION_FAILED_MESSAGE)
    if not user_name or not password:
        return failure

    user = store.find_by_name(user_name)
    if user is None or not store.check_password(user, password):
        logger.info(
            "credential check rejected",
            extra={"event": "credential_check", "user_name": user_name, "outcome": "fail"},
        )
        return failure
    return Ok(user)
