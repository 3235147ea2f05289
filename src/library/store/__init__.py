"""Repository helpers for Author, Book and User records."""

from . import authors, books, users

__all__ = ["authors", "books", "users"]
