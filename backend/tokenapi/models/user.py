"""Identity models: users, roles and their assignments."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates
from werkzeug.security import check_password_hash, generate_password_hash

from tokenapi.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin

user_roles = Table(
    "user_roles",
    db.metadata,
    Column("user_id", ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
)


def new_concurrency_stamp() -> str:
    """Return a fresh opaque concurrency stamp."""
    return uuid4().hex


class Role(PKMixin, ReprMixin, db.Model):
    """Named role assignable to users (e.g. ``admin``)."""

    __tablename__ = "roles"
    __repr_fields__ = ("name",)

    name: Mapped[str] = mapped_column(String(64), nullable=False)
    normalized_name: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)

    @validates("name")
    def _normalize_name(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Role name is required.")
        v = value.strip()
        self.normalized_name = v.upper()
        return v


class User(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Authentication identity plus its refresh-session state.

    Fields
    ------
    user_name : str
        Login name. Unique, compared case-insensitively via
        ``normalized_user_name``.
    password_hash : str
        Hashed password (write-only setter via ``password``).
    first_name, last_name, email : str | None
        Optional profile data captured at registration.
    refresh_token : str | None
        Current refresh token; ``None`` until the first login.
    refresh_token_expiry_time : datetime | None
        Absolute expiry of ``refresh_token`` (UTC).
    concurrency_stamp : str
        Rotated on every write; conditional updates compare against it.
    """

    __tablename__ = "users"
    __repr_fields__ = ("user_name",)

    user_name: Mapped[str] = mapped_column(String(256), nullable=False)
    normalized_user_name: Mapped[str] = mapped_column(String(256), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    email: Mapped[str | None] = mapped_column(String(254), nullable=True)
    refresh_token: Mapped[str | None] = mapped_column(String(128), nullable=True)
    refresh_token_expiry_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    concurrency_stamp: Mapped[str] = mapped_column(
        String(32), nullable=False, default=new_concurrency_stamp
    )

    roles: Mapped[list[Role]] = relationship(
        Role, secondary=user_roles, order_by=Role.name, lazy="selectin"
    )

    # -------------------- Password API --------------------
    @property
    def password(self) -> Any:  # pragma: no cover - explicit write-only contract
        """
        Disallow reading passwords.

        :raises AttributeError: Always, to ensure password is write-only.
        """
        raise AttributeError("Password is write-only.")

    @password.setter
    def password(self, raw: str) -> None:
        """
        Hash and set the password.

        :param raw: Plain text password to hash.
        :type raw: str
        """
        if not isinstance(raw, str) or not raw:
            raise ValueError("Password must be a non-empty string.")
        self.password_hash = generate_password_hash(raw)

    def verify_password(self, raw: str) -> bool:
        """
        Verify a password against the stored hash.

        :param raw: Plain text password candidate.
        :type raw: str
        :returns: ``True`` if it matches; otherwise ``False``.
        :rtype: bool
        """
        if not self.password_hash:
            return False
        return bool(check_password_hash(self.password_hash, raw))

    # -------------------- Validators --------------------
    @validates("user_name")
    def _normalize_user_name(self, key: str, value: str) -> str:
        """
        Trim the user name and keep its normalized twin in sync.

        :raises ValueError: If the user name is missing or only whitespace.
        """
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Username is required.")
        v = value.strip()
        self.normalized_user_name = v.upper()
        return v
