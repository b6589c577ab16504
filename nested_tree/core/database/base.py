"""Declarative base and column mixins shared by all models.

A tree model combines these with ``NestedSetMixin``:

    class Category(Base, IntegerPKMixin, TimestampMixin, NestedSetMixin):
        __tablename__ = "categories"
        name: Mapped[str] = mapped_column(String(255))

Every model names its table explicitly; the self-referencing parent key of
``NestedSetMixin`` is built from ``__tablename__``.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import DateTime, MetaData
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Declarative base whose constraints get predictable names."""

    metadata = MetaData(
        naming_convention={
            "ix": "ix_%(column_0_label)s",
            "uq": "uq_%(table_name)s_%(column_0_name)s",
            "ck": "ck_%(table_name)s_%(constraint_name)s",
            "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
            "pk": "pk_%(table_name)s",
        }
    )


class IntegerPKMixin:
    """``id`` column, an auto-incrementing integer key."""

    __allow_unmapped__ = True

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)


class TimestampMixin:
    """``created_at``/``updated_at`` columns in UTC.

    ``updated_at`` also moves when only the bounds of a row change, since
    range shifts are plain UPDATE statements.
    """

    __allow_unmapped__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        onupdate=_utcnow,
        nullable=False,
    )


__all__ = ["Base", "IntegerPKMixin", "TimestampMixin"]
