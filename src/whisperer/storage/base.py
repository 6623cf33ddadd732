"""Storage interfaces consumed by the delivery engine and the matcher.

The engines never talk to a database directly. They are handed objects
implementing these interfaces, so the same engine code runs against the
in-memory store (tests, development) and Supabase PostgREST (production).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from whisperer.models import (
        DeliveryLogEntry,
        MatchReview,
        TriggerType,
        WebhookSubscription,
    )


class WebhookRegistry(ABC):
    """Subscriber lookup and per-subscription statistics."""

    @abstractmethod
    async def find_active(
        self,
        user_id: str,
        trigger_type: TriggerType,
    ) -> list[WebhookSubscription]:
        """Active subscriptions of ``user_id`` to ``trigger_type``."""
        ...

    @abstractmethod
    async def get(self, webhook_id: str) -> WebhookSubscription | None:
        """Fetch one subscription, or None if it does not exist."""
        ...

    @abstractmethod
    async def update_stats(self, webhook_id: str, **changes: Any) -> None:
        """Apply a single-row update to one subscription.

        Only the delivery bookkeeping columns are expected here:
        success_count, failure_count, last_triggered, last_error, is_active.
        """
        ...


class DeliveryLog(ABC):
    """Append-only audit trail of delivery attempts."""

    @abstractmethod
    async def insert(self, entry: DeliveryLogEntry) -> DeliveryLogEntry:
        """Insert a new attempt row and return it as stored."""
        ...

    @abstractmethod
    async def update(self, entry: DeliveryLogEntry) -> None:
        """Persist the resolution (status, response, error) of an attempt."""
        ...

    @abstractmethod
    async def recent(self, webhook_id: str, limit: int) -> list[DeliveryLogEntry]:
        """Most recent attempts for a webhook, newest first."""
        ...


class MatchReviewSink(ABC):
    """Destination for match suggestions awaiting human confirmation."""

    @abstractmethod
    async def insert_review(self, review: MatchReview) -> MatchReview:
        """Persist a match review row."""
        ...


__all__ = ["DeliveryLog", "MatchReviewSink", "WebhookRegistry"]
