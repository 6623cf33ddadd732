"""Storage for webhook subscriptions, delivery logs and match reviews.

Example:
    ```python
    from whisperer.storage import InMemoryStore, create_store

    store = create_store(settings)  # InMemoryStore or PostgRESTStore
    subscriptions = await store.find_active("user_123", "analysis_completed")
    ```
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import DeliveryLog, MatchReviewSink, WebhookRegistry
from .memory import InMemoryStore
from .postgrest import PostgRESTStore

if TYPE_CHECKING:
    from whisperer.config import Settings


def create_store(settings: Settings) -> InMemoryStore | PostgRESTStore:
    """Build the store selected by ``settings.storage_backend``."""
    if settings.storage_backend == "postgrest":
        return PostgRESTStore.from_settings(settings)
    return InMemoryStore()


__all__ = [
    "DeliveryLog",
    "InMemoryStore",
    "MatchReviewSink",
    "PostgRESTStore",
    "WebhookRegistry",
    "create_store",
]
