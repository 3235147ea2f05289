"""
Integration tests for the catalog queries and mutations.

Runs documents through the schema against a SQLite database.
"""

import pytest
import pytest_asyncio

from library.errors import InvalidInputError, NotFoundError, UnauthenticatedError

ADD_BOOK = """
mutation AddBook($title: String!, $published: Int!, $author: String!, $genres: [String!]!) {
  addBook(title: $title, published: $published, author: $author, genres: $genres) {
    id
    title
    published
    genres
    author { name born bookCount }
  }
}
"""

EDIT_AUTHOR = """
mutation EditAuthor($name: String!, $setBornTo: Int) {
  editAuthor(name: $name, setBornTo: $setBornTo) { name born }
}
"""

COUNTS = "query { bookCount authorCount }"

ALL_BOOKS = """
query AllBooks($author: String, $genre: String) {
  allBooks(author: $author, genre: $genre) { title genres author { name } }
}
"""

ALL_AUTHORS = "query { allAuthors { name born bookCount } }"


def book_vars(title="Clean Code", published=2008, author="Robert Martin", genres=None):
    return {
        "title": title,
        "published": published,
        "author": author,
        "genres": ["refactoring"] if genres is None else genres,
    }


async def counts(execute):
    result = await execute(COUNTS)
    assert result.errors is None
    return result.data["bookCount"], result.data["authorCount"]


class TestAddBook:
    @pytest.mark.asyncio
    async def test_creates_book_and_author(self, execute, user):
        result = await execute(ADD_BOOK, book_vars(), user=user)

        assert result.errors is None
        book = result.data["addBook"]
        assert book["title"] == "Clean Code"
        assert book["published"] == 2008
        assert book["genres"] == ["refactoring"]
        assert book["author"] == {"name": "Robert Martin", "born": None, "bookCount": 1}
        assert await counts(execute) == (1, 1)

    @pytest.mark.asyncio
    async def test_reuses_existing_author(self, execute, user):
        await execute(ADD_BOOK, book_vars(), user=user)
        result = await execute(
            ADD_BOOK,
            book_vars(title="Agile software development", published=2002),
            user=user,
        )

        assert result.errors is None
        assert result.data["addBook"]["author"]["bookCount"] == 2
        assert await counts(execute) == (2, 1)

    @pytest.mark.asyncio
    async def test_requires_authentication(self, execute, database):
        result = await execute(ADD_BOOK, book_vars())

        assert result.data is None
        assert isinstance(result.errors[0].original_error, UnauthenticatedError)
        assert result.errors[0].extensions["code"] == "UNAUTHENTICATED"
        assert await counts(execute) == (0, 0)

    @pytest.mark.asyncio
    async def test_short_title_writes_nothing(self, execute, user):
        result = await execute(ADD_BOOK, book_vars(title="Abc", author="Brand New Author"), user=user)

        error = result.errors[0]
        assert isinstance(error.original_error, InvalidInputError)
        assert error.extensions["code"] == "BAD_USER_INPUT"
        assert error.extensions["invalidArgs"] == {"title": "Abc"}
        assert await counts(execute) == (0, 0)

    @pytest.mark.asyncio
    async def test_short_author_name_writes_nothing(self, execute, user):
        result = await execute(ADD_BOOK, book_vars(author="Bob"), user=user)

        assert isinstance(result.errors[0].original_error, InvalidInputError)
        assert result.errors[0].extensions["invalidArgs"] == {"author": "Bob"}
        assert await counts(execute) == (0, 0)

    @pytest.mark.asyncio
    async def test_duplicate_title_is_rejected(self, execute, user):
        await execute(ADD_BOOK, book_vars(), user=user)

        result = await execute(
            ADD_BOOK, book_vars(author="Someone Else Entirely", published=2020), user=user
        )

        assert isinstance(result.errors[0].original_error, InvalidInputError)
        assert await counts(execute) == (1, 1)

    @pytest.mark.asyncio
    async def test_genre_order_and_duplicates_kept(self, execute, user):
        result = await execute(
            ADD_BOOK, book_vars(genres=["design", "agile", "design"]), user=user
        )

        assert result.data["addBook"]["genres"] == ["design", "agile", "design"]

    @pytest.mark.asyncio
    async def test_publishes_to_attached_subscriber(self, execute, user, event_bus):
        from library.events import BOOK_ADDED

        with event_bus.subscribe(BOOK_ADDED) as subscription:
            result = await execute(ADD_BOOK, book_vars(), user=user)

            book = await subscription.__anext__()

        assert book.id == result.data["addBook"]["id"]
        assert book.title == "Clean Code"
        assert book.author.name == "Robert Martin"

    @pytest.mark.asyncio
    async def test_failed_add_publishes_nothing(self, execute, user, event_bus):
        from library.events import BOOK_ADDED

        with event_bus.subscribe(BOOK_ADDED) as subscription:
            await execute(ADD_BOOK, book_vars(title="Abc"), user=user)
            await execute(ADD_BOOK, book_vars(), user=user)

            book = await subscription.__anext__()

        assert book.title == "Clean Code"


class TestQueries:
    @pytest_asyncio.fixture
    async def catalog(self, execute, user):
        for variables in (
            book_vars(genres=["refactoring", "agile"]),
            book_vars(
                title="Agile software development",
                published=2002,
                genres=["agile", "patterns", "design"],
            ),
            book_vars(
                title="Refactoring, edition 2",
                published=2018,
                author="Martin Fowler",
                genres=["refactoring"],
            ),
        ):
            result = await execute(ADD_BOOK, variables, user=user)
            assert result.errors is None

    @pytest.mark.asyncio
    async def test_counts_on_empty_store(self, execute, database):
        assert await counts(execute) == (0, 0)

    @pytest.mark.asyncio
    async def test_all_books_unfiltered(self, execute, catalog):
        result = await execute(ALL_BOOKS)

        assert {b["title"] for b in result.data["allBooks"]} == {
            "Clean Code",
            "Agile software development",
            "Refactoring, edition 2",
        }

    @pytest.mark.asyncio
    async def test_all_books_by_author(self, execute, catalog):
        result = await execute(ALL_BOOKS, {"author": "Martin Fowler"})

        assert result.data["allBooks"] == [
            {
                "title": "Refactoring, edition 2",
                "genres": ["refactoring"],
                "author": {"name": "Martin Fowler"},
            }
        ]

    @pytest.mark.asyncio
    async def test_all_books_by_genre(self, execute, catalog):
        result = await execute(ALL_BOOKS, {"genre": "agile"})

        assert {b["title"] for b in result.data["allBooks"]} == {
            "Clean Code",
            "Agile software development",
        }

    @pytest.mark.asyncio
    async def test_all_books_by_author_and_genre(self, execute, catalog):
        result = await execute(ALL_BOOKS, {"author": "Robert Martin", "genre": "refactoring"})

        assert [b["title"] for b in result.data["allBooks"]] == ["Clean Code"]

    @pytest.mark.asyncio
    async def test_all_authors_with_live_book_counts(self, execute, catalog):
        result = await execute(ALL_AUTHORS)

        by_name = {a["name"]: a["bookCount"] for a in result.data["allAuthors"]}
        assert by_name == {"Robert Martin": 2, "Martin Fowler": 1}

    @pytest.mark.asyncio
    async def test_queries_need_no_authentication(self, execute, catalog):
        result = await execute(COUNTS)

        assert result.errors is None
        assert result.data == {"bookCount": 3, "authorCount": 2}


class TestEditAuthor:
    @pytest.mark.asyncio
    async def test_sets_birth_year(self, execute, user):
        await execute(ADD_BOOK, book_vars(), user=user)

        result = await execute(EDIT_AUTHOR, {"name": "Robert Martin", "setBornTo": 1952}, user=user)

        assert result.errors is None
        assert result.data["editAuthor"] == {"name": "Robert Martin", "born": 1952}
        authors = (await execute(ALL_AUTHORS)).data["allAuthors"]
        assert authors == [{"name": "Robert Martin", "born": 1952, "bookCount": 1}]

    @pytest.mark.asyncio
    async def test_requires_authentication(self, execute, user):
        await execute(ADD_BOOK, book_vars(), user=user)

        result = await execute(EDIT_AUTHOR, {"name": "Robert Martin", "setBornTo": 1952})

        assert isinstance(result.errors[0].original_error, UnauthenticatedError)
        authors = (await execute(ALL_AUTHORS)).data["allAuthors"]
        assert authors[0]["born"] is None

    @pytest.mark.asyncio
    async def test_unknown_author(self, execute, user):
        result = await execute(EDIT_AUTHOR, {"name": "Nobody Known", "setBornTo": 1900}, user=user)

        error = result.errors[0]
        assert isinstance(error.original_error, NotFoundError)
        assert error.extensions["code"] == "NOT_FOUND"


class TestConcurrentWrites:
    """Store constraints decide when two writers race past the read checks."""

    @pytest.mark.asyncio
    async def test_duplicate_title_past_precheck_is_bad_input(self, execute, user, monkeypatch):
        from library.graphql.resolvers import book as book_resolvers

        async def skip_validation(session, *, title, author):
            return None

        monkeypatch.setattr(book_resolvers, "validate_new_book", skip_validation)
        await execute(ADD_BOOK, book_vars(), user=user)

        result = await execute(ADD_BOOK, book_vars(), user=user)

        error = result.errors[0]
        assert isinstance(error.original_error, InvalidInputError)
        assert error.extensions["code"] == "BAD_USER_INPUT"
        assert error.extensions["invalidArgs"] == {"title": "Clean Code"}
        assert await counts(execute) == (1, 1)

    @pytest.mark.asyncio
    async def test_author_created_concurrently_is_reused(self, database, monkeypatch):
        from library.database.connection import get_async_session
        from library.graphql.resolvers.book import find_or_create_author
        from library.store import authors as authors_repo

        async with get_async_session() as session:
            existing = await authors_repo.create_author(session, name="Robert Martin")

        real_lookup = authors_repo.get_author_by_name
        calls = []

        async def lookup_misses_once(session, name):
            calls.append(name)
            if len(calls) == 1:
                return None
            return await real_lookup(session, name)

        monkeypatch.setattr(authors_repo, "get_author_by_name", lookup_misses_once)

        author = await find_or_create_author("Robert Martin")

        assert author.id == existing.id
        assert len(calls) == 2
        async with get_async_session() as session:
            assert await authors_repo.count_authors(session) == 1


class TestQueryLogging:
    @pytest.mark.asyncio
    async def test_all_books_logs_filters(self, execute, database, monkeypatch):
        from unittest.mock import MagicMock

        from library.graphql.resolvers import book as book_resolvers

        logger = MagicMock()
        monkeypatch.setattr(book_resolvers, "logger", logger)

        await execute(ALL_BOOKS, {"author": "Robert Martin", "genre": "agile"})

        logger.debug.assert_called_once_with(
            "Resolving allBooks", author="Robert Martin", genre="agile"
        )

    @pytest.mark.asyncio
    async def test_counts_are_logged(self, execute, database, monkeypatch):
        from unittest.mock import MagicMock

        from library.graphql.resolvers import author as author_resolvers
        from library.graphql.resolvers import book as book_resolvers

        book_logger, author_logger = MagicMock(), MagicMock()
        monkeypatch.setattr(book_resolvers, "logger", book_logger)
        monkeypatch.setattr(author_resolvers, "logger", author_logger)

        await execute(COUNTS)

        book_logger.debug.assert_called_once_with("Resolving bookCount")
        author_logger.debug.assert_called_once_with("Resolving authorCount")
