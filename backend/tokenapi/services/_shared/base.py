# tokenapi/services/_shared/base.py
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return the current timezone-aware UTC time."""
    return datetime.now(UTC)


@dataclass(slots=True)
class ServiceContext:
    """
    Carry cross-cutting call-scoped data.

    :param request_id: Correlation id for logging/tracing.
    """

    request_id: str | None = None


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Carry the call-scoped :class:`ServiceContext`.
    * Provide the clock every expiry computation reads, so tests can pin it.
    * Keep services thin, orchestration-only, no web/ORM leakage.
    """

    def __init__(self, *, ctx: ServiceContext | None = None, clock: Clock | None = None) -> None:
        """
        Initialize the base service.

        :param ctx: Optional call-scoped context.
        :type ctx: ServiceContext | None
        :param clock: Callable returning aware UTC ``datetime``; defaults to :func:`utc_now`.
        :type clock: Clock | None
        """
        self.ctx = ctx or ServiceContext()
        self._clock = clock or utc_now

    def now_utc(self) -> datetime:
        """Return "now" according to the injected clock."""
        return self._clock()
