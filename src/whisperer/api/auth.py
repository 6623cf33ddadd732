"""Authentication for internal trigger ingestion.

Upstream services call ``POST /triggers`` with
``Authorization: Bearer <WHISPERER_INTERNAL_SECRET>``. The endpoint is
not public, so a shared secret compared in constant time is enough.
"""

from __future__ import annotations

import hmac
from collections.abc import Callable
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from whisperer.exceptions import AuthenticationError
from whisperer.logging import get_logger

logger = get_logger(__name__)

# Security scheme for OpenAPI docs
security = HTTPBearer(auto_error=False)


def check_internal_secret(token: str | None, expected: str) -> None:
    """Raise AuthenticationError unless ``token`` equals ``expected``.

    Raises:
        AuthenticationError: Token missing or wrong.
    """
    if not token:
        raise AuthenticationError("Missing authentication credentials")
    if not hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8")):
        raise AuthenticationError("Invalid internal secret")


class InternalAuthDependency:
    """FastAPI dependency guarding internal endpoints.

    The expected secret is resolved per request so tests and hosts can
    swap the service (and its settings) at runtime.

    Usage:
        @router.post("/triggers")
        async def ingest(_: Annotated[None, Depends(InternalAuthDependency(get_secret))]):
            ...
    """

    def __init__(self, secret_provider: Callable[[], str]) -> None:
        self.secret_provider = secret_provider

    async def __call__(
        self,
        credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    ) -> None:
        token = credentials.credentials if credentials is not None else None
        check_internal_secret(token, self.secret_provider())
        logger.debug("Internal caller authenticated")


__all__ = ["InternalAuthDependency", "check_internal_secret", "security"]
