"""User and role repositories for the identity store."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import cast

from sqlalchemy import select, update

from tokenapi.models.user import Role, User, new_concurrency_stamp
from tokenapi.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    It NEVER issues tokens; it only stores the refresh-session fields.
    """

    model = User

    def get_by_name(self, user_name: str) -> User | None:
        """Fetch a user by name (case-insensitive).

        :param user_name: Login name to normalise and search.
        :type user_name: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = select(User).where(User.normalized_user_name == user_name.strip().upper())
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def exists_by_name(self, user_name: str) -> bool:
        """Return ``True`` when a user with the provided name exists."""
        stmt = select(User.id).where(User.normalized_user_name == user_name.strip().upper())
        return bool(self.session.execute(stmt).first())

    def update_refresh_state(
        self,
        user_id: int,
        *,
        refresh_token: str | None,
        expiry: datetime | None,
        expected_stamp: str | None = None,
    ) -> bool:
        """Write refresh token/expiry and rotate the concurrency stamp.

        A single ``UPDATE`` carries the stamp comparison, so the check and the
        write cannot interleave with another writer.

        :param user_id: Identifier of the user.
        :param refresh_token: New refresh token value.
        :param expiry: New absolute expiry.
        :param expected_stamp: When given, only update if the stored stamp matches.
        :returns: ``True`` if a row was updated.
        """
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(
                refresh_token=refresh_token,
                refresh_token_expiry_time=expiry,
                concurrency_stamp=new_concurrency_stamp(),
            )
            .execution_options(synchronize_session=False)
        )
        if expected_stamp is not None:
            stmt = stmt.where(User.concurrency_stamp == expected_stamp)
        result = self.session.execute(stmt)
        return bool(result.rowcount)


class RoleRepository(BaseRepository[Role]):
    """Persistence-only repository for :class:`Role`."""

    model = Role

    def get_by_names(self, names: Iterable[str]) -> dict[str, Role]:
        """Return roles keyed by normalized name for the requested names."""
        normalized = {n.strip().upper() for n in names if n and n.strip()}
        if not normalized:
            return {}
        stmt = select(Role).where(Role.normalized_name.in_(normalized))
        return {r.normalized_name: r for r in self.session.execute(stmt).scalars()}

    def ensure(self, name: str) -> Role:
        """Return the role called ``name``, creating it when missing."""
        existing = self.get_by_names([name]).get(name.strip().upper())
        if existing is not None:
            return existing
        return self.add(Role(name=name))
