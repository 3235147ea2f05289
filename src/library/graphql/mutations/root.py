"""
Root GraphQL mutation definitions
"""

import strawberry

from ..types.author import Author
from ..types.book import Book
from ..types.user import Token, User


@strawberry.type
class Mutation:
    """Root GraphQL mutation type."""

    # Catalog mutations (authenticated)
    @strawberry.mutation
    async def add_book(
        self,
        info: strawberry.Info,
        title: str,
        published: int,
        author: str,
        genres: list[str],
    ) -> Book:
        """Add a book, creating the author if needed."""
        from ..resolvers.book import add_book

        return await add_book(info, title, published, author, genres)

    @strawberry.mutation
    async def edit_author(
        self, info: strawberry.Info, name: str, set_born_to: int | None = None
    ) -> Author | None:
        """Set an author's birth year."""
        from ..resolvers.author import edit_author

        return await edit_author(info, name, set_born_to)

    # Account mutations
    @strawberry.mutation
    async def create_user(
        self, info: strawberry.Info, username: str, favorite_genre: str | None = None
    ) -> User:
        """Create a user account."""
        from ..resolvers.user import create_user

        return await create_user(info, username, favorite_genre)

    @strawberry.mutation
    async def login(self, info: strawberry.Info, username: str, password: str) -> Token:
        """Log in and receive a bearer token."""
        from ..resolvers.user import login

        return await login(info, username, password)
