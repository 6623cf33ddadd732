"""Supabase PostgREST storage.

Talks to the ``/rest/v1`` interface of a Supabase project with an async
httpx client and the service role key. Every call goes through
``postgrest_retry``; errors that survive the retries are raised as
StorageError so callers handle a single exception type.

Example:
    ```python
    store = PostgRESTStore.from_settings(settings)
    webhooks = await store.find_active("user_123", "analysis_completed")
    await store.aclose()
    ```
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
from pydantic import TypeAdapter

from whisperer.exceptions import ConfigurationError, StorageError
from whisperer.models import DeliveryLogEntry, MatchReview, WebhookSubscription

from .base import DeliveryLog, MatchReviewSink, WebhookRegistry
from .retry import postgrest_retry

if TYPE_CHECKING:
    from whisperer.config import Settings
    from whisperer.models import TriggerType


_patch_adapter: TypeAdapter[dict[str, Any]] = TypeAdapter(dict[str, Any])


def _jsonable(changes: dict[str, Any]) -> dict[str, Any]:
    """Serialize datetimes the way PostgREST expects them."""
    return _patch_adapter.dump_python(changes, mode="json")


class PostgRESTStore(WebhookRegistry, DeliveryLog, MatchReviewSink):
    """All storage interfaces backed by Supabase tables."""

    def __init__(
        self,
        base_url: str,
        service_key: str,
        webhooks_table: str = "zapier_webhooks",
        logs_table: str = "zapier_webhook_logs",
        reviews_table: str = "zapier_match_reviews",
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not base_url or not service_key:
            raise ConfigurationError("PostgRESTStore requires a base URL and a service key")

        self.webhooks_table = webhooks_table
        self.logs_table = logs_table
        self.reviews_table = reviews_table
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/rest/v1",
            headers={
                "apikey": service_key,
                "Authorization": f"Bearer {service_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout_seconds,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> PostgRESTStore:
        if not settings.supabase_url or not settings.supabase_service_key:
            raise ConfigurationError(
                "WHISPERER_SUPABASE_URL and WHISPERER_SUPABASE_SERVICE_KEY are required"
            )
        return cls(
            base_url=settings.supabase_url,
            service_key=settings.supabase_service_key,
            webhooks_table=settings.webhooks_table,
            logs_table=settings.delivery_logs_table,
            reviews_table=settings.match_reviews_table,
            timeout_seconds=settings.storage_timeout_seconds,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @postgrest_retry
    async def _send(
        self,
        method: str,
        table: str,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> Any:
        headers = {"Prefer": prefer} if prefer else None
        response = await self._client.request(
            method, f"/{table}", params=params, json=json, headers=headers
        )
        response.raise_for_status()
        if not response.content:
            return None
        return response.json()

    async def _request(
        self,
        method: str,
        table: str,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> Any:
        try:
            return await self._send(method, table, params=params, json=json, prefer=prefer)
        except httpx.HTTPStatusError as e:
            raise StorageError(
                f"{method} {table} failed: HTTP {e.response.status_code} {e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise StorageError(f"{method} {table} failed: {e}") from e

    # WebhookRegistry

    async def find_active(
        self,
        user_id: str,
        trigger_type: TriggerType,
    ) -> list[WebhookSubscription]:
        rows = await self._request(
            "GET",
            self.webhooks_table,
            params={
                "select": "*",
                "user_id": f"eq.{user_id}",
                "trigger_type": f"eq.{trigger_type}",
                "is_active": "eq.true",
            },
        )
        return [WebhookSubscription.model_validate(row) for row in rows or []]

    async def get(self, webhook_id: str) -> WebhookSubscription | None:
        rows = await self._request(
            "GET",
            self.webhooks_table,
            params={"select": "*", "id": f"eq.{webhook_id}", "limit": "1"},
        )
        if not rows:
            return None
        return WebhookSubscription.model_validate(rows[0])

    async def update_stats(self, webhook_id: str, **changes: Any) -> None:
        await self._request(
            "PATCH",
            self.webhooks_table,
            params={"id": f"eq.{webhook_id}"},
            json=_jsonable(changes),
            prefer="return=minimal",
        )

    # DeliveryLog

    async def insert(self, entry: DeliveryLogEntry) -> DeliveryLogEntry:
        rows = await self._request(
            "POST",
            self.logs_table,
            json=entry.model_dump(mode="json"),
            prefer="return=representation",
        )
        if not rows:
            raise StorageError(f"Insert into {self.logs_table} returned no row")
        return DeliveryLogEntry.model_validate(rows[0])

    async def update(self, entry: DeliveryLogEntry) -> None:
        await self._request(
            "PATCH",
            self.logs_table,
            params={"id": f"eq.{entry.id}"},
            json=entry.resolution(mode="json"),
            prefer="return=minimal",
        )

    async def recent(self, webhook_id: str, limit: int) -> list[DeliveryLogEntry]:
        rows = await self._request(
            "GET",
            self.logs_table,
            params={
                "select": "*",
                "webhook_id": f"eq.{webhook_id}",
                "order": "created_at.desc",
                "limit": str(limit),
            },
        )
        return [DeliveryLogEntry.model_validate(row) for row in rows or []]

    # MatchReviewSink

    async def insert_review(self, review: MatchReview) -> MatchReview:
        rows = await self._request(
            "POST",
            self.reviews_table,
            json=review.model_dump(mode="json"),
            prefer="return=representation",
        )
        if not rows:
            return review
        return MatchReview.model_validate(rows[0])


__all__ = ["PostgRESTStore"]
