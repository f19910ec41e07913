"""
tokenapi.services._shared.ports
===============================

*Ports* (hexagonal interfaces) that decouple the token services from
identity storage.

Modules
-------
- :mod:`user_store`:
    Defines :class:`~.UserStore` with its :class:`~.UserRecord` read-model and
    :class:`~.StoreResult` write outcome, plus :class:`~.InMemoryUserStore`.

Design Notes
------------
Concrete adapters (e.g. the SQLAlchemy store) live under ``tokenapi.infra``.
"""

from __future__ import annotations

from .user_store import (
    CONCURRENCY_FAILURE,
    DUPLICATE_USER_NAME,
    INVALID_USER_NAME,
    PASSWORD_TOO_SHORT,
    ROLE_NOT_FOUND,
    USER_NOT_FOUND,
    InMemoryUserStore,
    StoreError,
    StoreResult,
    UserRecord,
    UserStore,
    roles_not_found,
    validate_new_user,
)

__all__ = [
    "UserStore",
    "UserRecord",
    "StoreResult",
    "StoreError",
    "InMemoryUserStore",
    "validate_new_user",
    "roles_not_found",
    "CONCURRENCY_FAILURE",
    "DUPLICATE_USER_NAME",
    "INVALID_USER_NAME",
    "PASSWORD_TOO_SHORT",
    "ROLE_NOT_FOUND",
    "USER_NOT_FOUND",
]
