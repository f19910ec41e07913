"""Column mixins shared by the identity models."""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar

from sqlalchemy import DateTime, Integer, func
from sqlalchemy.orm import Mapped, mapped_column


class PKMixin:
    """Integer surrogate key named ``id``."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True)


class TimestampMixin:
    """Audit columns filled by the database.

    Attributes
    ----------
    created_at:
        Set on insert.
    updated_at:
        Set on insert and refreshed on every ORM update. Core ``UPDATE``
        statements (the refresh-state write) leave it alone.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )


class ReprMixin:
    """``<Model id=1 user_name='alice'>`` style repr.

    Only the attributes named in ``__repr_fields__`` are rendered, so
    secrets such as password hashes and refresh tokens never leak into logs.
    """

    __repr_fields__: ClassVar[tuple[str, ...]] = ()

    def __repr__(self) -> str:
        parts = [f"id={getattr(self, 'id', None)}"]
        parts += [f"{name}={getattr(self, name, None)!r}" for name in self.__repr_fields__]
        return f"<{type(self).__name__} {' '.join(parts)}>"
