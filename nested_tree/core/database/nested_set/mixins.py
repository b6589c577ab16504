"""Declarative mixin with the default nested-set columns."""

from __future__ import annotations

from sqlalchemy import ForeignKey, Integer
from sqlalchemy.orm import Mapped, declared_attr, mapped_column


class NestedSetMixin:
    """Adds ``parent_id``, ``lft`` and ``rght`` columns to a model.

    Column names match the defaults of :class:`NestedSetConfig`, so a model
    using this mixin needs no extra configuration. ``left``/``right`` are
    avoided as column names because both are reserved words in SQL.

    Example:
        >>> class Category(Base, IntegerPKMixin, NestedSetMixin):
        ...     __tablename__ = "categories"
        ...     name: Mapped[str] = mapped_column(String(255))
        >>>
        >>> store = SQLAlchemyBoundsStore(session, Category)

    Note:
        Bounds are maintained by ``NestedSetEngine``; never assign them by
        hand outside the values returned from ``before_create``.
    """

    __allow_unmapped__ = True

    @declared_attr
    def parent_id(cls) -> Mapped[int | None]:
        return mapped_column(
            Integer,
            ForeignKey(f"{cls.__tablename__}.id"),
            nullable=True,
            index=True,
            comment="Direct parent, NULL for roots",
        )

    lft: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        index=True,
        comment="Nested-set left bound",
    )
    rght: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        index=True,
        comment="Nested-set right bound",
    )

    @property
    def descendant_count(self) -> int:
        """Number of descendants derived from the loaded bounds.

        This property does NOT query the database.
        """
        return (self.rght - self.lft - 1) // 2

    @property
    def is_root(self) -> bool:
        return self.parent_id is None


__all__ = ["NestedSetMixin"]
