"""
Library backend
GraphQL catalog of books and authors with real-time book notifications
"""

__version__ = "0.1.0"

from .config import settings

__all__ = ["settings", "__version__"]
