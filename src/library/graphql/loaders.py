from uuid import UUID

from strawberry.dataloader import DataLoader

from ..database.connection import get_async_session
from ..store import authors as authors_repo


async def load_book_counts(keys: list[UUID]) -> list[int]:
    """Batch count books for several authors with one grouped query."""
    async with get_async_session() as session:
        counts = await authors_repo.count_books_by_authors(session, keys)
    return [counts.get(key, 0) for key in keys]


class Loaders:
    def __init__(self):
        # Batch only; caching would serve stale counts on long-lived subscription contexts
        self.book_count_loader = DataLoader(load_fn=load_book_counts, cache=False)
