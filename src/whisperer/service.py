"""Whisperer service layer.

Wires the configured store into the webhook dispatcher and the contact
matcher behind one object the API (or any other host) can own.

Example:
    ```python
    from whisperer.service import WhispererService

    async with WhispererService.create() as whisperer:
        tasks = await whisperer.process_trigger(
            {
                "trigger_type": "analysis_completed",
                "user_id": "user_123",
                "analysis_id": "an_456",
                "data": {"deal_intelligence": {"deal_score": 82}},
            }
        )

        result = await whisperer.match_participant(
            "Bob Jones - Acme",
            user_id="user_123",
            contacts=roster,
        )
    ```
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from whisperer.config import Settings
from whisperer.matching import ContactMatcher, match_multiple_participants
from whisperer.models import (
    CRMContact,
    DeliveryOutcome,
    ParticipantMatchResult,
    TriggerEvent,
)
from whisperer.storage import InMemoryStore, PostgRESTStore, create_store
from whisperer.webhooks import WebhookDispatcher, dispatch_trigger

logger = logging.getLogger(__name__)


@dataclass
class WhispererService:
    """Trigger fan-out and participant matching over a shared store.

    Attributes:
        store: Subscriptions, delivery logs and match reviews.
        settings: Configuration settings.
        dispatcher: Webhook dispatcher bound to ``store``.
    """

    store: InMemoryStore | PostgRESTStore
    settings: Settings
    dispatcher: WebhookDispatcher = field(init=False)

    def __post_init__(self) -> None:
        self.dispatcher = WebhookDispatcher(
            registry=self.store,
            delivery_log=self.store,
            settings=self.settings.delivery,
        )

    @classmethod
    def create(cls, settings: Settings | None = None) -> WhispererService:
        """Create a WhispererService with the store selected by settings.

        Args:
            settings: Optional settings. Uses defaults if None.

        Returns:
            Configured WhispererService instance.
        """
        if settings is None:
            settings = Settings()
        return cls(store=create_store(settings), settings=settings)

    async def initialize(self) -> None:
        logger.info(
            "Whisperer service ready (storage=%s, max_attempts=%d)",
            self.settings.storage_backend,
            self.settings.delivery.max_attempts,
        )

    async def close(self, cancel_pending: bool = False) -> None:
        """Wait for (or cancel) in-flight deliveries, then release the store."""
        await self.dispatcher.aclose(cancel=cancel_pending)
        await self.store.aclose()

    async def __aenter__(self) -> WhispererService:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def process_trigger(
        self,
        raw_event: dict[str, Any] | TriggerEvent,
    ) -> list[asyncio.Task[DeliveryOutcome | None]]:
        """Validate a trigger event and start deliveries to its subscribers.

        Raises:
            ValidationError: The event is malformed; nothing is delivered.
        """
        if isinstance(raw_event, dict):
            return await dispatch_trigger(self.dispatcher, raw_event)
        return await self.dispatcher.process_trigger_event(raw_event)

    def matcher(self, contacts: Iterable[CRMContact] | None = None) -> ContactMatcher:
        """A matcher over ``contacts`` that writes reviews to the store."""
        return ContactMatcher(contacts, review_sink=self.store, settings=self.settings.matching)

    async def match_participant(
        self,
        participant: str,
        user_id: str,
        contacts: Iterable[CRMContact],
        analysis_id: str | None = None,
    ) -> ParticipantMatchResult:
        return await self.matcher(contacts).match_participant(participant, user_id, analysis_id)

    async def match_participants(
        self,
        participants: Iterable[str],
        user_id: str,
        analysis_id: str,
        contacts: Iterable[CRMContact],
    ) -> list[ParticipantMatchResult]:
        return await match_multiple_participants(
            participants,
            user_id,
            analysis_id,
            contacts,
            review_sink=self.store,
            settings=self.settings.matching,
        )


__all__ = ["WhispererService"]
