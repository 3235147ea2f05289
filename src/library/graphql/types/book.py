"""
Book GraphQL type definitions
"""

import strawberry

from .author import Author


@strawberry.type
class Book:
    """Book type for GraphQL API."""

    id: strawberry.ID
    title: str
    published: int
    genres: list[str]
    author: Author
