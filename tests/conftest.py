"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from whisperer.config import DeliverySettings, Settings
from whisperer.models import CRMContact, WebhookSubscription
from whisperer.storage import InMemoryStore

# Add tests directory to path so helpers can be imported from test modules
tests_dir = Path(__file__).parent
if str(tests_dir) not in sys.path:
    sys.path.insert(0, str(tests_dir))

TEST_INTERNAL_SECRET = "test-internal-secret-0123456789abcdef"


def make_response(status_code: int = 200, text: str = "OK", reason: str = "OK") -> MagicMock:
    """Build a stand-in for an httpx.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    response.reason_phrase = reason
    return response


def make_http_client(
    response: MagicMock | None = None,
    side_effect: object = None,
) -> AsyncMock:
    """Build an AsyncClient mock usable as ``async with httpx.AsyncClient(...)``."""
    mock_client = AsyncMock()
    if side_effect is not None:
        mock_client.post = AsyncMock(side_effect=side_effect)
    else:
        mock_client.post = AsyncMock(return_value=response or make_response())
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=None)
    return mock_client


@pytest.fixture
def store() -> InMemoryStore:
    """Empty in-memory store."""
    return InMemoryStore()


@pytest.fixture
def subscription(store: InMemoryStore) -> WebhookSubscription:
    """A signed subscription registered in ``store``."""
    return store.add_subscription(
        WebhookSubscription(
            id="wh_signed",
            user_id="user_1",
            trigger_type="analysis_completed",
            webhook_url="https://hooks.example.com/catch/1",
            secret_token="whsec_test_secret",
        )
    )


@pytest.fixture
def delivery_settings() -> DeliverySettings:
    return DeliverySettings()


@pytest.fixture
def sleep() -> AsyncMock:
    """Records backoff delays instead of waiting."""
    return AsyncMock(return_value=None)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(env="test", internal_secret=TEST_INTERNAL_SECRET)


@pytest.fixture
def roster() -> list[CRMContact]:
    """A small CRM roster covering every matching strategy."""
    return [
        CRMContact(id="c_john", name="John Smith", email="john@acme.com", company="Acme Incorporated"),
        CRMContact(id="c_robert", name="Robert Jones", email="rjones@acme.com", company="Acme"),
        CRMContact(id="c_sarah", name="Sarah Lee", email="sarah@globex.com", company="Globex Corp"),
        CRMContact(id="c_nocompany", name="Pat Doe", email="pat@initech.com"),
    ]
