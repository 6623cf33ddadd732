"""Outbound webhook delivery with HMAC signatures, backoff and a circuit breaker.

Delivery guarantees:
- At-least-once: each subscriber gets up to ``max_attempts`` POSTs per trigger
- Retries for one webhook are sequential (never two requests in flight)
- Subscribers are delivered concurrently and independently
- 10 consecutive failed attempts disable the subscription until re-enabled
"""

from __future__ import annotations

import asyncio
import hashlib
import hmac
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import httpx

from whisperer.config import DeliverySettings
from whisperer.exceptions import DeliveryError, StorageError, WhispererError
from whisperer.models import (
    CIRCUIT_BREAKER_ERROR,
    DeliveryLogEntry,
    DeliveryOutcome,
    WebhookPayload,
    event_data,
    parse_trigger_event,
    utc_now,
)

if TYPE_CHECKING:
    from whisperer.models import TriggerEvent, WebhookSubscription
    from whisperer.storage import DeliveryLog, WebhookRegistry

logger = logging.getLogger(__name__)


def compute_signature(payload: str, secret: str) -> str:
    """Compute HMAC-SHA256 signature for a webhook payload.

    Args:
        payload: Exact JSON string that is sent as the request body.
        secret: Subscription's secret token.

    Returns:
        Signature in format "sha256=<hex_digest>".
    """
    signature = hmac.new(
        key=secret.encode("utf-8"),
        msg=payload.encode("utf-8"),
        digestmod=hashlib.sha256,
    ).hexdigest()
    return f"sha256={signature}"


def verify_signature(payload: str, secret: str, signature: str) -> bool:
    """Verify an ``X-Signature`` header on the receiving side.

    Uses a constant-time comparison. Any change to the payload bytes
    invalidates the signature.
    """
    expected = compute_signature(payload, secret)
    return hmac.compare_digest(expected, signature)


def iso_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a Z suffix."""
    return utc_now().isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_headers(
    webhook: WebhookSubscription,
    body: str,
    attempt: int,
    user_agent: str,
) -> dict[str, str]:
    """Headers for one delivery attempt.

    ``X-Signature`` is only present when the subscription has a secret.
    """
    headers = {
        "Content-Type": "application/json",
        "User-Agent": user_agent,
        "X-Delivery-Id": str(uuid4()),
        "X-Timestamp": iso_timestamp(),
        "X-Attempt": str(attempt),
        "X-Trigger-Type": webhook.trigger_type,
    }
    if webhook.secret_token:
        headers["X-Signature"] = compute_signature(body, webhook.secret_token)
    return headers


class WebhookDispatcher:
    """Delivers trigger events to every subscribed webhook.

    Handles:
    - Finding active subscriptions for a (user, trigger type) pair
    - Spawning one background delivery chain per subscription
    - Signing payloads with HMAC-SHA256
    - Retrying failed attempts on the 1s/5s/15s/45s backoff schedule
    - Disabling endpoints that fail 10 times in a row

    Example:
        ```python
        dispatcher = WebhookDispatcher(store, store)

        # Returns as soon as subscriptions are enumerated
        tasks = await dispatcher.process_trigger_event(event)

        # On shutdown, wait for in-flight chains
        await dispatcher.drain()
        ```
    """

    def __init__(
        self,
        registry: WebhookRegistry,
        delivery_log: DeliveryLog,
        settings: DeliverySettings | None = None,
        sleep: Callable[[float], Awaitable[Any]] | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            registry: Subscription lookup and stats updates.
            delivery_log: Per-attempt audit log.
            settings: Timeouts, attempt cap, backoff schedule, breaker window.
            sleep: Awaitable used between retries (defaults to asyncio.sleep).
        """
        self._registry = registry
        self._log = delivery_log
        self._settings = settings or DeliverySettings()
        self._sleep = sleep or asyncio.sleep
        self._tasks: set[asyncio.Task[DeliveryOutcome | None]] = set()
        self._closed = False

    @property
    def pending(self) -> int:
        """Number of delivery chains still running."""
        return len(self._tasks)

    async def process_trigger_event(
        self, event: TriggerEvent
    ) -> list[asyncio.Task[DeliveryOutcome | None]]:
        """Fan an event out to all active subscribers.

        Does not wait for any delivery. Each subscription gets its own task;
        one subscriber's failures never affect another's.

        Args:
            event: Validated trigger event.

        Returns:
            The spawned delivery tasks (empty when nobody is subscribed).

        Raises:
            DeliveryError: The dispatcher has been closed.
        """
        if self._closed:
            raise DeliveryError("Dispatcher is closed; trigger not delivered")

        webhooks = await self._registry.find_active(
            user_id=event.user_id,
            trigger_type=event.trigger_type,
        )

        if not webhooks:
            logger.debug(
                "No active webhooks for trigger %s, user %s", event.trigger_type, event.user_id
            )
            return []

        payload = WebhookPayload(
            trigger_type=event.trigger_type,
            user_id=event.user_id,
            analysis_id=event.analysis_id,
            data=event_data(event),
        )

        tasks = []
        for webhook in webhooks:
            task = asyncio.create_task(
                self._run_delivery_chain(webhook.id, payload),
                name=f"webhook-delivery-{webhook.id}",
            )
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            tasks.append(task)

        logger.info(
            "Queued %d webhook deliveries for trigger %s", len(tasks), event.trigger_type
        )
        return tasks

    async def drain(self) -> None:
        """Wait until every running delivery chain has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self, cancel: bool = False) -> None:
        """Stop the dispatcher, optionally cancelling chains waiting on backoff."""
        self._closed = True
        if cancel:
            for task in list(self._tasks):
                task.cancel()
        await self.drain()

    async def _run_delivery_chain(
        self,
        webhook_id: str,
        payload: WebhookPayload,
    ) -> DeliveryOutcome | None:
        """Attempt delivery until success, a terminal outcome, or the attempt cap."""
        max_attempts = self._settings.max_attempts
        outcome: DeliveryOutcome | None = None

        for attempt in range(1, max_attempts + 1):
            try:
                outcome = await self.deliver_webhook(webhook_id, payload, attempt)
            except Exception as e:
                logger.exception("Webhook delivery system error for %s: %s", webhook_id, e)
                return outcome

            if not outcome.retryable:
                return outcome

            if attempt >= max_attempts:
                logger.warning(
                    "Max attempts reached for webhook %s after %d attempts", webhook_id, attempt
                )
                return outcome

            delay = self._settings.retry_delay(attempt)
            logger.info(
                "Scheduling retry for webhook %s in %.0fs (attempt %d/%d)",
                webhook_id,
                delay,
                attempt + 1,
                max_attempts,
            )
            await self._sleep(delay)

        return outcome

    async def deliver_webhook(
        self,
        webhook_id: str,
        payload: WebhookPayload,
        attempt: int = 1,
    ) -> DeliveryOutcome:
        """Make one delivery attempt.

        Re-reads the subscription, consults the circuit breaker, logs a
        pending attempt, POSTs the signed payload and records the result
        on both the log row and the subscription.

        Args:
            webhook_id: Subscription to deliver to.
            payload: Body shared by every attempt of this trigger instance.
            attempt: 1-based attempt number.

        Returns:
            Outcome of this attempt. Only ``failed`` outcomes are retried.
        """
        webhook = await self._registry.get(webhook_id)
        if webhook is None or not webhook.is_active:
            logger.info("Webhook %s not found or inactive, skipping delivery", webhook_id)
            return DeliveryOutcome(
                webhook_id=webhook_id,
                attempt=attempt,
                status="skipped",
                error="Webhook not found or inactive",
            )

        if await self._circuit_open(webhook):
            return DeliveryOutcome(
                webhook_id=webhook_id,
                attempt=attempt,
                status="circuit_open",
                error=CIRCUIT_BREAKER_ERROR,
            )

        body = payload.model_dump_json()
        headers = build_headers(webhook, body, attempt, self._settings.user_agent)

        entry = DeliveryLogEntry(
            webhook_id=webhook.id,
            trigger_data=payload.model_dump(mode="json"),
            delivery_status="pending",
            attempt_count=attempt,
        )
        try:
            entry = await self._log.insert(entry)
        except StorageError as e:
            logger.error("Failed to create delivery log for webhook %s: %s", webhook_id, e)
            return DeliveryOutcome(
                webhook_id=webhook_id,
                attempt=attempt,
                status="aborted",
                error=f"Delivery log unavailable: {e.message}",
            )

        logger.info(
            "Delivering webhook %s, attempt %d/%d",
            webhook_id,
            attempt,
            self._settings.max_attempts,
        )

        status_code: int | None = None
        response_body: str | None = None
        try:
            async with asyncio.timeout(self._settings.timeout_seconds):
                async with httpx.AsyncClient(timeout=self._settings.timeout_seconds) as client:
                    response = await client.post(
                        webhook.webhook_url,
                        content=body,
                        headers=headers,
                    )
            status_code = response.status_code
            response_body = response.text or None

            if 200 <= status_code < 300:
                return await self._record_success(webhook, entry, attempt, status_code, response_body)

            error = f"HTTP {status_code}: {response.reason_phrase}"

        except (httpx.TimeoutException, TimeoutError):
            error = f"Request timed out after {self._settings.timeout_seconds:g}s"
        except httpx.HTTPError as e:
            error = str(e) or e.__class__.__name__
        except Exception as e:
            logger.exception("Unexpected webhook delivery error for %s: %s", webhook_id, e)
            error = f"Unexpected error: {e}"

        return await self._record_failure(webhook, entry, attempt, error, status_code, response_body)

    async def _circuit_open(self, webhook: WebhookSubscription) -> bool:
        """Trip the breaker if the last ``window`` attempts all failed.

        Tripping disables the subscription permanently; there is no
        automatic re-arm.
        """
        window = self._settings.circuit_breaker_window
        try:
            recent = await self._log.recent(webhook.id, limit=window)
        except StorageError as e:
            logger.warning("Could not read delivery history for %s: %s", webhook.id, e)
            return False

        if len(recent) != window or any(log.delivery_status != "failed" for log in recent):
            return False

        try:
            await self._registry.update_stats(
                webhook.id,
                is_active=False,
                last_error=CIRCUIT_BREAKER_ERROR,
            )
        except WhispererError as e:
            logger.error("Failed to disable webhook %s: %s", webhook.id, e)

        logger.warning(
            "Circuit breaker triggered for webhook %s after %d consecutive failures",
            webhook.id,
            window,
        )
        return True

    async def _record_success(
        self,
        webhook: WebhookSubscription,
        entry: DeliveryLogEntry,
        attempt: int,
        status_code: int,
        response_body: str | None,
    ) -> DeliveryOutcome:
        entry.mark_delivered(
            status_code=status_code,
            response_body=response_body,
            body_limit=self._settings.response_body_limit,
        )
        await self._update_log(entry)
        await self._update_stats(
            webhook.id,
            success_count=webhook.success_count + 1,
            last_triggered=utc_now(),
            last_error=None,
        )
        logger.info("Webhook delivered: %s (status %d)", webhook.id, status_code)
        return DeliveryOutcome(
            webhook_id=webhook.id,
            attempt=attempt,
            status="delivered",
            http_status_code=status_code,
            log_id=entry.id,
        )

    async def _record_failure(
        self,
        webhook: WebhookSubscription,
        entry: DeliveryLogEntry,
        attempt: int,
        error: str,
        status_code: int | None,
        response_body: str | None,
    ) -> DeliveryOutcome:
        entry.mark_failed(
            error=error,
            status_code=status_code,
            response_body=response_body,
            body_limit=self._settings.response_body_limit,
        )
        await self._update_log(entry)
        await self._update_stats(
            webhook.id,
            failure_count=webhook.failure_count + 1,
            last_error=error,
        )
        logger.warning("Webhook delivery failed: %s attempt %d: %s", webhook.id, attempt, error)
        return DeliveryOutcome(
            webhook_id=webhook.id,
            attempt=attempt,
            status="failed",
            http_status_code=status_code,
            error=error,
            log_id=entry.id,
        )

    async def _update_log(self, entry: DeliveryLogEntry) -> None:
        try:
            await self._log.update(entry)
        except WhispererError as e:
            logger.error("Failed to update delivery log %s: %s", entry.id, e)

    async def _update_stats(self, webhook_id: str, **changes: Any) -> None:
        try:
            await self._registry.update_stats(webhook_id, **changes)
        except WhispererError as e:
            logger.error("Failed to update stats for webhook %s: %s", webhook_id, e)


async def dispatch_trigger(
    dispatcher: WebhookDispatcher,
    raw_event: dict[str, Any],
) -> list[asyncio.Task[DeliveryOutcome | None]]:
    """Validate an untyped trigger body and fan it out through ``dispatcher``.

    The chains belong to ``dispatcher``, so its ``drain()`` and ``aclose()``
    wait for them.

    Args:
        dispatcher: Dispatcher that owns the delivery chains.
        raw_event: Decoded JSON with trigger_type, user_id, analysis_id, data.

    Returns:
        The spawned delivery tasks.

    Raises:
        ValidationError: The event is malformed; nothing is delivered.
    """
    event = parse_trigger_event(raw_event)
    return await dispatcher.process_trigger_event(event)
