"""SQLAlchemy models for the nodes feature."""

from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from nested_tree.core.database import Base, IntegerPKMixin, NestedSetMixin, TimestampMixin


class TreeNode(Base, IntegerPKMixin, TimestampMixin, NestedSetMixin):
    """A named node of the nested-set forest.

    ``lft``/``rght``/``parent_id`` come from ``NestedSetMixin`` and are
    owned by the tree engine. Only ``name`` is edited directly.
    """

    __tablename__ = "tree_nodes"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Display name",
    )

    def __repr__(self) -> str:
        """Return node summary for debugging."""
        return f"<TreeNode(id={self.id}, name={self.name!r}, lft={self.lft}, rght={self.rght})>"
