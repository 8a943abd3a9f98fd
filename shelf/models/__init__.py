from shelf.models.user import User
from shelf.models.category import Category
from shelf.models.media import Book, Movie, TvShow

__all__ = [
    "User",
    "Category",
    "Book",
    "Movie",
    "TvShow",
]
