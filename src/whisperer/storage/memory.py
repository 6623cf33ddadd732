"""In-process storage for development and tests.

Holds subscriptions, delivery log rows and match reviews in dicts.
Not shared between processes and lost on restart.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from whisperer.exceptions import NotFoundError, StorageError

from .base import DeliveryLog, MatchReviewSink, WebhookRegistry

if TYPE_CHECKING:
    from whisperer.models import (
        DeliveryLogEntry,
        MatchReview,
        TriggerType,
        WebhookSubscription,
    )

# Columns update_stats may touch
STAT_FIELDS = frozenset(
    {"success_count", "failure_count", "last_triggered", "last_error", "is_active"}
)


class InMemoryStore(WebhookRegistry, DeliveryLog, MatchReviewSink):
    """Dict-backed implementation of every storage interface."""

    def __init__(self) -> None:
        self._webhooks: dict[str, WebhookSubscription] = {}
        self._logs: list[DeliveryLogEntry] = []
        self._reviews: list[MatchReview] = []

    # Subscriptions

    def add_subscription(self, subscription: WebhookSubscription) -> WebhookSubscription:
        """Register a subscription (normally done by the user-facing app)."""
        self._webhooks[subscription.id] = subscription.model_copy(deep=True)
        return subscription

    async def find_active(
        self,
        user_id: str,
        trigger_type: TriggerType,
    ) -> list[WebhookSubscription]:
        return [
            wh.model_copy(deep=True)
            for wh in self._webhooks.values()
            if wh.user_id == user_id and wh.trigger_type == trigger_type and wh.is_active
        ]

    async def get(self, webhook_id: str) -> WebhookSubscription | None:
        webhook = self._webhooks.get(webhook_id)
        return webhook.model_copy(deep=True) if webhook is not None else None

    async def update_stats(self, webhook_id: str, **changes: Any) -> None:
        webhook = self._webhooks.get(webhook_id)
        if webhook is None:
            raise NotFoundError("webhook", webhook_id)
        unknown = set(changes) - STAT_FIELDS
        if unknown:
            raise StorageError(f"Cannot update non-stat columns: {sorted(unknown)}")
        self._webhooks[webhook_id] = webhook.model_copy(update=changes)

    # Delivery log

    async def insert(self, entry: DeliveryLogEntry) -> DeliveryLogEntry:
        self._logs.append(entry.model_copy(deep=True))
        return entry

    async def update(self, entry: DeliveryLogEntry) -> None:
        for index, stored in enumerate(self._logs):
            if stored.id == entry.id:
                self._logs[index] = stored.model_copy(update=entry.resolution())
                return
        raise NotFoundError("delivery_log", entry.id)

    async def recent(self, webhook_id: str, limit: int) -> list[DeliveryLogEntry]:
        rows = [log for log in self._logs if log.webhook_id == webhook_id]
        # Insertion order breaks created_at ties between rapid attempts
        ordered = sorted(enumerate(rows), key=lambda pair: (pair[1].created_at, pair[0]), reverse=True)
        return [row.model_copy(deep=True) for _, row in ordered[:limit]]

    def logs_for(self, webhook_id: str) -> list[DeliveryLogEntry]:
        """All attempts for a webhook in insertion order."""
        return [log.model_copy(deep=True) for log in self._logs if log.webhook_id == webhook_id]

    # Match reviews

    async def insert_review(self, review: MatchReview) -> MatchReview:
        self._reviews.append(review.model_copy(deep=True))
        return review

    @property
    def reviews(self) -> list[MatchReview]:
        return [review.model_copy(deep=True) for review in self._reviews]

    async def aclose(self) -> None:
        """Nothing to release; present so stores are interchangeable."""


__all__ = ["InMemoryStore"]
