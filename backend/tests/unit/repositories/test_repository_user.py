"""Unit tests for UserRepository and RoleRepository."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from tests.factories.user import RoleFactory, UserFactory
from tokenapi.repositories.user import RoleRepository, UserRepository


class TestUserRepository:
    """Ensure ``UserRepository`` performs core persistence operations."""

    @pytest.fixture()
    def repo(self):
        return UserRepository()

    def test_get_by_name_is_case_insensitive(self, repo, session):
        u = UserFactory(user_name="alice")
        session.commit()

        fetched = repo.get_by_name("ALICE")
        assert fetched is not None
        assert fetched.id == u.id
        assert repo.get_by_name("nobody") is None

    def test_exists_by_name(self, repo, session):
        UserFactory(user_name="bob")
        session.commit()

        assert repo.exists_by_name(" Bob ")
        assert not repo.exists_by_name("nonexistent")

    def test_update_refresh_state_rotates_stamp(self, repo, session):
        u = UserFactory()
        session.commit()
        old_stamp = u.concurrency_stamp
        expiry = datetime.now(UTC) + timedelta(hours=2)

        assert repo.update_refresh_state(u.id, refresh_token="rt", expiry=expiry) is True
        session.commit()
        session.expire_all()

        refreshed = repo.get(u.id)
        assert refreshed.refresh_token == "rt"
        assert refreshed.concurrency_stamp != old_stamp

    def test_update_refresh_state_with_stale_stamp_is_a_noop(self, repo, session):
        u = UserFactory()
        session.commit()

        written = repo.update_refresh_state(
            u.id, refresh_token="rt", expiry=None, expected_stamp="stale"
        )
        session.commit()
        session.expire_all()

        assert written is False
        assert repo.get(u.id).refresh_token is None

    def test_update_refresh_state_with_current_stamp(self, repo, session):
        u = UserFactory()
        session.commit()

        assert repo.update_refresh_state(
            u.id, refresh_token="rt", expiry=None, expected_stamp=u.concurrency_stamp
        )


class TestRoleRepository:
    @pytest.fixture()
    def repo(self):
        return RoleRepository()

    def test_get_by_names_keys_by_normalized_name(self, repo, session):
        RoleFactory(name="Admin")
        session.commit()

        found = repo.get_by_names(["admin", "missing", " "])
        assert list(found) == ["ADMIN"]
        assert found["ADMIN"].name == "Admin"

    def test_ensure_is_idempotent(self, repo, session):
        first = repo.ensure("auditor")
        second = repo.ensure("AUDITOR")
        assert first is second
