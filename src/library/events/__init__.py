"""In-process publish/subscribe for real-time notifications."""

from .bus import BOOK_ADDED, EventBus, Subscription

__all__ = ["BOOK_ADDED", "EventBus", "Subscription"]
