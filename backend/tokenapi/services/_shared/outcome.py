"""
Tagged outcomes for expected, caller-recoverable results.

A service operation returns either :class:`Ok` carrying its payload or
:class:`Failure` carrying a :class:`FailureKind` plus a message that is safe
to show to clients. Nothing here is raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Generic, TypeVar, Union

T = TypeVar("T")


class FailureKind(Enum):
    """Error taxonomy for rejected requests."""

    AUTHENTICATION_FAILED = "authentication_failed"
    REGISTRATION_FAILED = "registration_failed"
    TOKEN_VALIDATION_FAILED = "token_validation_failed"
    INVALID_REFRESH_REQUEST = "invalid_refresh_request"


# Problem status per kind; anything not listed maps to 400
_STATUS_BY_KIND = {
    FailureKind.AUTHENTICATION_FAILED: 401,
    FailureKind.TOKEN_VALIDATION_FAILED: 401,
}


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """
    Successful outcome.

    :param value: Operation payload.
    """

    value: T
    ok: ClassVar[bool] = True


@dataclass(frozen=True, slots=True)
class Failure:
    """
    Rejected outcome.

    :param kind: Error kind from :class:`FailureKind`.
    :type kind: FailureKind
    :param message: Human-readable summary, safe for clients.
    :type message: str
    :param details: Optional safe details (e.g. user-store validation errors).
    :type details: tuple[dict[str, str], ...]
    """

    kind: FailureKind
    message: str
    details: tuple[dict[str, str], ...] = ()
    ok: ClassVar[bool] = False

    @property
    def status(self) -> int:
        return _STATUS_BY_KIND.get(self.kind, 400)

    def as_problem(self) -> dict[str, Any]:
        """
        Render the failure as an RFC 7807-style problem dict.

        :returns: ``{"type", "title", "status", "code", "detail"}`` plus
                  ``details`` when present.
        :rtype: dict[str, Any]
        """
        problem: dict[str, Any] = {
            "type": "about:blank",
            "title": "Unauthorized" if self.status == 401 else "Bad Request",
            "status": self.status,
            "code": self.kind.value,
            "detail": self.message,
        }
        if self.details:
            problem["details"] = [dict(d) for d in self.details]
        return problem


Outcome = Union[Ok[T], Failure]

__all__ = ["FailureKind", "Failure", "Ok", "Outcome"]
