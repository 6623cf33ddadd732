"""Whisperer exception hierarchy.

Provides structured exceptions for error handling throughout the codebase.
All exceptions inherit from WhispererError for easy catching.
"""

from __future__ import annotations


class WhispererError(Exception):
    """Base exception for all Whisperer errors.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code for API responses.
    """

    code: str = "whisperer_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, object]:
        """Convert exception to API-friendly dictionary."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
            }
        }


class ValidationError(WhispererError):
    """Invalid input provided.

    Raised when a trigger event or match request fails validation.

    Attributes:
        field: The field that failed validation.
        message: Description of the validation failure.
    """

    code: str = "validation_error"

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f"{field}: {message}")

    def to_dict(self) -> dict[str, object]:
        """Convert exception to API-friendly dictionary."""
        return {
            "error": {
                "code": self.code,
                "field": self.field,
                "message": self.message,
            }
        }


class NotFoundError(WhispererError):
    """Resource not found.

    Attributes:
        resource_type: Type of resource (e.g., "webhook").
        resource_id: ID of the missing resource.
    """

    code: str = "not_found"

    def __init__(self, resource_type: str, resource_id: str) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(f"{resource_type} not found: {resource_id}")

    def to_dict(self) -> dict[str, object]:
        """Convert exception to API-friendly dictionary."""
        return {
            "error": {
                "code": self.code,
                "resource_type": self.resource_type,
                "resource_id": self.resource_id,
                "message": self.message,
            }
        }


class StorageError(WhispererError):
    """Storage operation failed.

    Raised when the webhook registry, delivery log or review sink
    cannot complete a read or write.
    """

    code: str = "storage_error"


class DeliveryError(WhispererError):
    """Webhook delivery could not be attempted."""

    code: str = "delivery_error"


class ConfigurationError(WhispererError):
    """Required configuration is missing or invalid."""

    code: str = "configuration_error"


class AuthenticationError(WhispererError):
    """Authentication failed.

    Raised when the internal bearer secret is missing or wrong.
    """

    code: str = "authentication_error"
