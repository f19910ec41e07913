"""Tests for the User and Role models."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError
from tokenapi.models.user import Role, User


class TestUser:
    def test_password_hashing(self, session):
        u = User(user_name="tester")
        u.password = "secret123"
        session.add(u)
        session.commit()
        assert u.password_hash != "secret123"
        assert u.verify_password("secret123") is True
        assert u.verify_password("wrong") is False

    def test_password_is_write_only(self):
        u = User(user_name="u1")
        u.password = "x"
        with pytest.raises(AttributeError):
            _ = u.password

    def test_user_name_trimmed_and_normalized(self):
        u = User(user_name="  Alice ")
        assert u.user_name == "Alice"
        assert u.normalized_user_name == "ALICE"

    def test_blank_user_name_rejected(self):
        with pytest.raises(ValueError):
            User(user_name="   ")

    def test_user_name_unique_ignoring_case(self, session):
        u1 = User(user_name="bob")
        u1.password = "pw"
        session.add(u1)
        session.commit()

        u2 = User(user_name="BOB")
        u2.password = "pw"
        session.add(u2)
        with pytest.raises(IntegrityError):
            session.commit()
        session.rollback()

    def test_new_user_has_stamp_and_no_refresh_state(self, session):
        u = User(user_name="carol")
        u.password = "pw"
        session.add(u)
        session.flush()
        assert u.concurrency_stamp
        assert u.refresh_token is None
        assert u.refresh_token_expiry_time is None


class TestRole:
    def test_roles_ordered_by_name(self, session):
        u = User(user_name="dave")
        u.password = "pw"
        u.roles.extend([Role(name="user"), Role(name="admin")])
        session.add(u)
        session.commit()
        session.expire_all()

        fetched = session.get(User, u.id)
        assert [r.name for r in fetched.roles] == ["admin", "user"]

    def test_role_name_normalized(self):
        assert Role(name=" Admin ").normalized_name == "ADMIN"


def test_repr_never_shows_secrets():
    u = User(user_name="erin")
    u.password = "secret123"
    u.refresh_token = "rt-value"
    text = repr(u)
    assert "erin" in text
    assert "secret123" not in text
    assert u.password_hash not in text
    assert "rt-value" not in text
