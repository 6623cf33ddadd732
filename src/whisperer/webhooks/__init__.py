"""Webhook delivery system for Whisperer.

Provides HMAC-signed webhook delivery with exponential backoff retry and
a consecutive-failure circuit breaker.

Example:
    ```python
    from whisperer.webhooks import WebhookDispatcher, dispatch_trigger

    # Using dispatcher directly
    dispatcher = WebhookDispatcher(store, store)
    await dispatcher.process_trigger_event(event)

    # Validating an untyped body first
    await dispatch_trigger(
        dispatcher,
        {
            "trigger_type": "hot_deal_identified",
            "user_id": "user_123",
            "analysis_id": "an_456",
            "data": {"deal_intelligence": {"heat_level": "hot"}},
        },
    )
    ```
"""

from .delivery import (
    WebhookDispatcher,
    build_headers,
    compute_signature,
    dispatch_trigger,
    verify_signature,
)

__all__ = [
    "WebhookDispatcher",
    "build_headers",
    "compute_signature",
    "dispatch_trigger",
    "verify_signature",
]
