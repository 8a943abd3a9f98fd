from sqlalchemy import String, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shelf.extensions import db
from shelf.models.base import TimestampMixin
from shelf.services.category_paths import is_descendant_path


class Category(TimestampMixin, db.Model):
    """A node in an owner's category forest.

    ``path`` is the materialized path: dot-separated 1-based sibling positions
    from the root down to this node, e.g. ``"3.1.2"``. Its last segment is
    ``sort_order`` and its segment count is ``level + 1``.
    """

    __tablename__ = "categories"
    __table_args__ = (
        UniqueConstraint("owner_id", "path", name="uq_categories_owner_id_path"),
        Index("ix_categories_owner_id_parent_id", "owner_id", "parent_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(120))
    path: Mapped[str] = mapped_column(String(255), index=True)
    level: Mapped[int] = mapped_column(default=0)
    sort_order: Mapped[int] = mapped_column(default=1)
    media_type: Mapped[str | None] = mapped_column(String(20))
    parent_id: Mapped[int | None] = mapped_column(
        ForeignKey("categories.id"), index=True
    )
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)

    # Self-referencing relationship
    parent = relationship("Category", remote_side="Category.id", back_populates="children")
    children = relationship("Category", back_populates="parent", lazy="dynamic")
    owner = relationship("User", back_populates="categories")

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def is_ancestor_of(self, other: "Category") -> bool:
        return is_descendant_path(other.path, self.path)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "level": self.level,
            "sort_order": self.sort_order,
            "parent_id": self.parent_id,
            "media_type": self.media_type,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Category {self.path} {self.name}>"
