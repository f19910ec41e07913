"""
Unit of Work contract used by the user store.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class UnitOfWork(ABC):
    """
    One transaction around one user-store call.

    Implementations expose ``users`` and ``roles`` repositories bound to the
    same session, commit when the block exits cleanly and roll back when it
    raises.
    """

    @abstractmethod
    def __enter__(self) -> UnitOfWork: ...

    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None: ...

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...
