"""
Error classes for the link service.

Each ``LinkError`` carries the HTTP status the web layer should answer
with, so routes never have to translate error kinds by hand.
"""

from typing import Optional, Dict, Any


class LinkError(Exception):
    """
    Base error for link operations.

    Attributes:
        status_code: HTTP status code (default: 500)
        message: Error message (default: "Internal server error")
        details: Optional additional error details
    """
    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        """
        Initialize link error.

        Args:
            message: Error message (overrides default)
            details: Optional additional error details
        """
        self.message = message or self.message
        self.details = details or {}
        super().__init__(self.message)


class InvalidUrl(LinkError):
    """400 Original URL failed validation."""
    status_code = 400
    message = "Please enter a valid URL starting with http:// or https://"


class InvalidAlias(LinkError):
    """400 Custom alias failed the pattern, length or reserved-word check."""
    status_code = 400
    message = (
        "Custom alias must be 3-20 characters and contain only letters, "
        "numbers, hyphens, and underscores"
    )


class InvalidExpiry(LinkError):
    """400 Expiration date is not in the future."""
    status_code = 400
    message = "Expiration date must be in the future"


class AliasTaken(LinkError):
    """400 Custom alias collides with an existing code or alias."""
    status_code = 400
    message = "Custom alias already exists"


class GenerationExhausted(LinkError):
    """503 No free random code was found within the retry cap."""
    status_code = 503
    message = "Unable to generate a unique short code, please retry"


class NotFound(LinkError):
    """404 No matching active link."""
    status_code = 404
    message = "URL not found"


class Expired(LinkError):
    """410 Link exists but its expiry has passed."""
    status_code = 410
    message = "URL has expired"


class Unauthorized(LinkError):
    """401 Owner identity missing from the request."""
    status_code = 401
    message = "Owner identity required"


class StoreError(Exception):
    """Base class for errors raised by a link store."""


class StoreUnavailable(StoreError, LinkError):
    """500 Store connection, pool or timeout failure."""
    status_code = 500
    message = "Storage backend unavailable"


class DuplicateKeyError(StoreError):
    """A unique index rejected an insert.

    Attributes:
        field: Name of the colliding field ("code" or "custom_alias")
        value: The colliding value
    """

    def __init__(self, field: str, value: Optional[str] = None):
        self.field = field
        self.value = value
        super().__init__(f"Duplicate value for {field}: {value!r}")
