"""Identity claim set for an authenticated user."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from tokenapi.services._shared.ports import UserRecord, UserStore

NAME_CLAIM = "unique_name"
ROLE_CLAIM = "role"


@dataclass(frozen=True, slots=True)
class Claim:
    """A single named assertion embedded in a token."""

    type: str
    value: str


def build_claims(user: UserRecord, store: UserStore) -> list[Claim]:
    """
    Build the claim list for ``user``: one name claim, then one role claim
    per role in the order the store returns them (duplicates kept).
    """
    claims = [Claim(NAME_CLAIM, user.user_name)]
    for role in store.get_roles(user):
        claims.append(Claim(ROLE_CLAIM, role))
    return claims


def claims_to_payload(claims: list[Claim]) -> dict[str, Any]:
    """
    Fold claims into a JWT payload.

    A claim type seen once maps to a string; repeated types collapse into a
    list in their original order.
    """
    payload: dict[str, Any] = {}
    for claim in claims:
        current = payload.get(claim.type)
        if current is None:
            payload[claim.type] = claim.value
        elif isinstance(current, list):
            current.append(claim.value)
        else:
            payload[claim.type] = [current, claim.value]
    return payload
