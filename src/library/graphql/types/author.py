"""
Author GraphQL type definitions
"""

import strawberry


@strawberry.type
class Author:
    """Author type for GraphQL API."""

    id: strawberry.ID
    name: str
    born: int | None

    @strawberry.field
    async def book_count(self, info: strawberry.Info) -> int:
        """Number of books currently referencing this author."""
        from ..resolvers.author import resolve_author_book_count

        return await resolve_author_book_count(self, info)
