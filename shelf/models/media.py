from sqlalchemy import String, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shelf.extensions import db
from shelf.models.base import TimestampMixin


class Book(TimestampMixin, db.Model):
    __tablename__ = "books"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(300), index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    category_id: Mapped[int | None] = mapped_column(
        ForeignKey("categories.id"), index=True
    )

    # Relationships
    user = relationship("User", back_populates="books")
    category = relationship("Category")

    def __repr__(self):
        return f"<Book {self.title}>"


class Movie(TimestampMixin, db.Model):
    __tablename__ = "movies"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(300), index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    category_id: Mapped[int | None] = mapped_column(
        ForeignKey("categories.id"), index=True
    )

    # Relationships
    user = relationship("User", back_populates="movies")
    category = relationship("Category")

    def __repr__(self):
        return f"<Movie {self.title}>"


class TvShow(TimestampMixin, db.Model):
    __tablename__ = "tv_shows"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(300), index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    category_id: Mapped[int | None] = mapped_column(
        ForeignKey("categories.id"), index=True
    )

    # Relationships
    user = relationship("User", back_populates="tv_shows")
    category = relationship("Category")

    def __repr__(self):
        return f"<TvShow {self.title}>"


# Media tables whose rows pin a category in place.
CATEGORIZED_MODELS = (Book, Movie, TvShow)
