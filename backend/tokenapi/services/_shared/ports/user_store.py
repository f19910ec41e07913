from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Protocol
from uuid import uuid4

from werkzeug.security import check_password_hash, generate_password_hash

# Store error codes
DUPLICATE_USER_NAME = "DuplicateUserName"
INVALID_USER_NAME = "InvalidUserName"
PASSWORD_TOO_SHORT = "PasswordTooShort"
ROLE_NOT_FOUND = "RoleNotFound"
USER_NOT_FOUND = "UserNotFound"
CONCURRENCY_FAILURE = "ConcurrencyFailure"


@dataclass(frozen=True, slots=True)
class StoreError:
    """
    Single validation or constraint error reported by a user store.

    :ivar code: Stable machine-readable code (e.g. ``DuplicateUserName``).
    :ivar description: Human-readable explanation, safe for clients.
    """

    code: str
    description: str

    def as_dict(self) -> dict[str, str]:
        return {"code": self.code, "description": self.description}


@dataclass(frozen=True, slots=True)
class StoreResult:
    """Outcome of a user-store write: success flag plus error details."""

    succeeded: bool
    errors: tuple[StoreError, ...] = ()

    @classmethod
    def success(cls) -> StoreResult:
        return cls(succeeded=True)

    @classmethod
    def failed(cls, *errors: StoreError) -> StoreResult:
        return cls(succeeded=False, errors=tuple(errors))


@dataclass(frozen=True, slots=True)
class UserRecord:
    """
    Read-model of a user as seen by the token services.

    :ivar user_name: Unique login name.
    :ivar id: Store identifier; ``None`` until created.
    :ivar first_name: Optional first name.
    :ivar last_name: Optional last name.
    :ivar email: Optional email.
    :ivar refresh_token: Current refresh token (``None`` = none issued).
    :ivar refresh_token_expiry_time: Absolute expiry of the refresh token (UTC).
    :ivar concurrency_stamp: Opaque value rotated on every store write.
    """

    user_name: str
    id: int | str | None = None
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    refresh_token: str | None = None
    refresh_token_expiry_time: datetime | None = None
    concurrency_stamp: str | None = None


def validate_new_user(user: UserRecord, password: str | None, *, min_length: int) -> list[StoreError]:
    """
    Apply the user-name and password rules every store enforces on creation.

    :returns: Errors found; empty when the user may be created.
    """
    errors: list[StoreError] = []
    if not user.user_name or not user.user_name.strip():
        errors.append(StoreError(INVALID_USER_NAME, "Username is required."))
    if not password or len(password) < min_length:
        errors.append(
            StoreError(PASSWORD_TOO_SHORT, f"Passwords must be at least {min_length} characters.")
        )
    return errors


def roles_not_found(missing: Iterable[str]) -> StoreResult:
    """Build the store result reporting ``missing`` role names."""
    errors = [StoreError(ROLE_NOT_FOUND, f"Role '{name}' does not exist.") for name in missing]
    return StoreResult.failed(*errors) if errors else StoreResult.success()


class UserStore(Protocol):
    """
    Identity store consumed by the token services.

    Implementations own password policy and hashing. ``update`` MUST apply
    the ``expected_stamp`` check and the write atomically.
    """

    def create(self, user: UserRecord, password: str) -> StoreResult:
        """Create ``user`` with ``password``; reject duplicates and policy violations."""

    def find_by_name(self, user_name: str) -> UserRecord | None:
        """Look a user up by name (case-insensitive)."""

    def check_password(self, user: UserRecord, password: str) -> bool:
        """Return ``True`` when ``password`` matches the stored hash."""

    def get_roles(self, user: UserRecord) -> list[str]:
        """Return the role names assigned to ``user``."""

    def validate_roles(self, roles: Iterable[str]) -> StoreResult:
        """Fail with one ``RoleNotFound`` error per role that does not exist."""

    def add_to_roles(self, user: UserRecord, roles: Iterable[str]) -> StoreResult:
        """Assign existing roles to ``user``."""

    def update(self, user: UserRecord, *, expected_stamp: str | None = None) -> StoreResult:
        """
        Persist the refresh-token fields of ``user``.

        When ``expected_stamp`` is given the write only happens if the stored
        concurrency stamp still equals it; otherwise a ``ConcurrencyFailure``
        error is returned.
        """


@dataclass(slots=True)
class _StoredUser:
    record: UserRecord
    password_hash: str
    roles: list[str] = field(default_factory=list)


class InMemoryUserStore(UserStore):
    """
    In-memory user store honoring the same contract as the SQL store.

    .. note::
       Uses a threading lock so conditional updates are atomic in tests.
    """

    def __init__(self, *, roles: Iterable[str] = (), password_min_length: int = 6) -> None:
        self._users: dict[str, _StoredUser] = {}
        self._roles: dict[str, str] = {r.upper(): r for r in roles}
        self._seq = 0
        self._lock = threading.Lock()
        self.password_min_length = password_min_length

    # ------------------------- helpers -------------------------

    @staticmethod
    def _key(user_name: str) -> str:
        return user_name.strip().upper()

    def add_role(self, name: str) -> None:
        """Register a role so users can be assigned to it."""
        with self._lock:
            self._roles[name.upper()] = name

    # -------------------------- API ----------------------------

    def create(self, user: UserRecord, password: str) -> StoreResult:
        errors = validate_new_user(user, password, min_length=self.password_min_length)
        if errors:
            return StoreResult.failed(*errors)

        key = self._key(user.user_name)
        with self._lock:
            if key in self._users:
                return StoreResult.failed(
                    StoreError(DUPLICATE_USER_NAME, f"Username '{user.user_name}' is already taken.")
                )
            self._seq += 1
            record = replace(
                user,
                id=self._seq,
                user_name=user.user_name.strip(),
                concurrency_stamp=uuid4().hex,
            )
            self._users[key] = _StoredUser(
                record=record, password_hash=generate_password_hash(password)
            )
        return StoreResult.success()

    def find_by_name(self, user_name: str) -> UserRecord | None:
        if not user_name:
            return None
        stored = self._users.get(self._key(user_name))
        return stored.record if stored else None

    def check_password(self, user: UserRecord, password: str) -> bool:
        stored = self._users.get(self._key(user.user_name))
        if stored is None or not password:
            return False
        return bool(check_password_hash(stored.password_hash, password))

    def get_roles(self, user: UserRecord) -> list[str]:
        stored = self._users.get(self._key(user.user_name))
        return list(stored.roles) if stored else []

    def validate_roles(self, roles: Iterable[str]) -> StoreResult:
        missing = [r for r in roles if r.upper() not in self._roles]
        return roles_not_found(missing)

    def add_to_roles(self, user: UserRecord, roles: Iterable[str]) -> StoreResult:
        with self._lock:
            stored = self._users.get(self._key(user.user_name))
            if stored is None:
                return StoreResult.failed(StoreError(USER_NOT_FOUND, "User not found."))
            resolved: list[str] = []
            for role in roles:
                name = self._roles.get(role.upper())
                if name is None:
                    return StoreResult.failed(
                        StoreError(ROLE_NOT_FOUND, f"Role '{role}' does not exist.")
                    )
                resolved.append(name)
            for name in resolved:
                if name not in stored.roles:
                    stored.roles.append(name)
        return StoreResult.success()

    def update(self, user: UserRecord, *, expected_stamp: str | None = None) -> StoreResult:
        with self._lock:
            stored = self._users.get(self._key(user.user_name))
            if stored is None:
                return StoreResult.failed(StoreError(USER_NOT_FOUND, "User not found."))
            if expected_stamp is not None and stored.record.concurrency_stamp != expected_stamp:
                return StoreResult.failed(
                    StoreError(CONCURRENCY_FAILURE, "The user was modified concurrently.")
                )
            stored.record = replace(
                stored.record,
                refresh_token=user.refresh_token,
                refresh_token_expiry_time=user.refresh_token_expiry_time,
                concurrency_stamp=uuid4().hex,
            )
        return StoreResult.success()
