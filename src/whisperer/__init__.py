"""Whisperer: signed webhooks and contact matching for sales call analysis.

Two independent engines:

- Webhook delivery: fans trigger events (analysis completed, hot deal,
  follow-up required, ...) out to user-registered URLs with HMAC
  signatures, exponential backoff and a consecutive-failure circuit
  breaker.
- Contact matching: turns free-text meeting participants
  ("Bob Jones - Acme") into ranked CRM contact suggestions with
  confidence scores and a human-review flag.

Quick Start:
    from whisperer.service import WhispererService

    async with WhispererService.create() as whisperer:
        await whisperer.process_trigger(
            {
                "trigger_type": "hot_deal_identified",
                "user_id": "user_123",
                "analysis_id": "an_456",
                "data": {"deal_intelligence": {"heat_level": "hot"}},
            }
        )

        result = await whisperer.match_participant(
            "John Smith from Acme Inc",
            user_id="user_123",
            contacts=roster,
        )
"""

__version__ = "0.1.0"

# Configuration
from .config import DeliverySettings, MatchingSettings, Settings, settings

# Exceptions
from .exceptions import (
    AuthenticationError,
    ConfigurationError,
    DeliveryError,
    NotFoundError,
    StorageError,
    ValidationError,
    WhispererError,
)

# Logging
from .logging import (
    bind_context,
    configure_logging,
    get_logger,
    unbind_context,
)

# Engines
from .matching import ContactMatcher, match_multiple_participants
from .service import WhispererService
from .webhooks import WebhookDispatcher, compute_signature, verify_signature

__all__ = [
    "__version__",
    # Configuration
    "DeliverySettings",
    "MatchingSettings",
    "Settings",
    "settings",
    # Exceptions
    "AuthenticationError",
    "ConfigurationError",
    "DeliveryError",
    "NotFoundError",
    "StorageError",
    "ValidationError",
    "WhispererError",
    # Logging
    "bind_context",
    "configure_logging",
    "get_logger",
    "unbind_context",
    # Engines
    "ContactMatcher",
    "WebhookDispatcher",
    "WhispererService",
    "compute_signature",
    "match_multiple_participants",
    "verify_signature",
]
