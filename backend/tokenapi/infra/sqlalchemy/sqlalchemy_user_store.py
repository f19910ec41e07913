# comments in English; reST docstrings
from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy.exc import IntegrityError

from tokenapi.models.user import User, new_concurrency_stamp
from tokenapi.services._shared.ports import (
    CONCURRENCY_FAILURE,
    DUPLICATE_USER_NAME,
    ROLE_NOT_FOUND,
    USER_NOT_FOUND,
    StoreError,
    StoreResult,
    UserRecord,
    UserStore,
    roles_not_found,
    validate_new_user,
)
from tokenapi.uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork

logger = logging.getLogger(__name__)


def _as_utc(dt: datetime | None) -> datetime | None:
    # SQLite drops tzinfo; values are always written in UTC
    if dt is None or dt.tzinfo is not None:
        return dt
    return dt.replace(tzinfo=UTC)


def _duplicate(user_name: str) -> StoreResult:
    return StoreResult.failed(
        StoreError(DUPLICATE_USER_NAME, f"Username '{user_name}' is already taken.")
    )


@dataclass(slots=True)
class SQLAlchemyUserStore(UserStore):
    """
    Relational user store backed by the Flask-SQLAlchemy session.

    Every call runs in its own unit of work, so callers never see ORM rows;
    they receive detached :class:`UserRecord` snapshots instead.

    :param password_min_length: Minimum accepted password length on creation.
    """

    password_min_length: int = 6

    # -------------------- helpers --------------------

    @staticmethod
    def _to_record(row: User) -> UserRecord:
        return UserRecord(
            user_name=row.user_name,
            id=row.id,
            first_name=row.first_name,
            last_name=row.last_name,
            email=row.email,
            refresh_token=row.refresh_token,
            refresh_token_expiry_time=_as_utc(row.refresh_token_expiry_time),
            concurrency_stamp=row.concurrency_stamp,
        )

    # -------------------- API ------------------------

    def create(self, user: UserRecord, password: str) -> StoreResult:
        errors = validate_new_user(user, password, min_length=self.password_min_length)
        if errors:
            return StoreResult.failed(*errors)

        try:
            with SQLAlchemyUnitOfWork() as uow:
                if uow.users.exists_by_name(user.user_name):
                    return _duplicate(user.user_name)
                row = User(
                    user_name=user.user_name,
                    first_name=user.first_name,
                    last_name=user.last_name,
                    email=user.email,
                )
                row.password = password
                uow.users.add(row)
        except IntegrityError:
            # Lost a race against a concurrent registration of the same name
            logger.info("user creation hit the unique index")
            return _duplicate(user.user_name)
        return StoreResult.success()

    def find_by_name(self, user_name: str) -> UserRecord | None:
        if not user_name or not user_name.strip():
            return None
        with SQLAlchemyReadOnlyUnitOfWork() as uow:
            row = uow.users.get_by_name(user_name)
            return self._to_record(row) if row is not None else None

    def check_password(self, user: UserRecord, password: str) -> bool:
        if not password:
            return False
        with SQLAlchemyReadOnlyUnitOfWork() as uow:
            row = uow.users.get_by_name(user.user_name)
            return row is not None and row.verify_password(password)

    def get_roles(self, user: UserRecord) -> list[str]:
        with SQLAlchemyReadOnlyUnitOfWork() as uow:
            row = uow.users.get_by_name(user.user_name)
            return [role.name for role in row.roles] if row is not None else []

    def validate_roles(self, roles: Iterable[str]) -> StoreResult:
        requested = list(roles)
        with SQLAlchemyReadOnlyUnitOfWork() as uow:
            found = uow.roles.get_by_names(requested)
        return roles_not_found(r for r in requested if r.strip().upper() not in found)

    def add_to_roles(self, user: UserRecord, roles: Iterable[str]) -> StoreResult:
        requested = list(roles)
        with SQLAlchemyUnitOfWork() as uow:
            row = uow.users.get_by_name(user.user_name)
            if row is None:
                return StoreResult.failed(StoreError(USER_NOT_FOUND, "User not found."))
            found = uow.roles.get_by_names(requested)
            for name in requested:
                role = found.get(name.strip().upper())
                if role is None:
                    uow.rollback()
                    return StoreResult.failed(
                        StoreError(ROLE_NOT_FOUND, f"Role '{name}' does not exist.")
                    )
                if role not in row.roles:
                    row.roles.append(role)
            row.concurrency_stamp = new_concurrency_stamp()
        return StoreResult.success()

    def update(self, user: UserRecord, *, expected_stamp: str | None = None) -> StoreResult:
        with SQLAlchemyUnitOfWork() as uow:
            user_id = user.id
            if user_id is None:
                row = uow.users.get_by_name(user.user_name)
                if row is None:
                    return StoreResult.failed(StoreError(USER_NOT_FOUND, "User not found."))
                user_id = row.id
            written = uow.users.update_refresh_state(
                int(user_id),
                refresh_token=user.refresh_token,
                expiry=user.refresh_token_expiry_time,
                expected_stamp=expected_stamp,
            )
        if written:
            return StoreResult.success()
        if expected_stamp is not None:
            return StoreResult.failed(
                StoreError(CONCURRENCY_FAILURE, "The user was modified concurrently.")
            )
        return StoreResult.failed(StoreError(USER_NOT_FOUND, "User not found."))
