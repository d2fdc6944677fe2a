"""Validation utilities for short links."""

from datetime import datetime, timezone
from typing import Optional, Tuple
from urllib.parse import urlparse


DEFAULT_MAX_URL_LENGTH = 2048

# Lookup keys that would shadow service routes
RESERVED_WORDS = frozenset({
    "api", "health", "stats", "urls", "shorten", "docs", "redoc",
    "static", "favicon", "robots", "sitemap",
})


def is_valid_url(url: str, max_length: int = DEFAULT_MAX_URL_LENGTH) -> Tuple[bool, str]:
    """Validate an original URL.

    Args:
        url: The URL to validate
        max_length: Maximum accepted length

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not url or not isinstance(url, str):
        return False, "URL is required"

    if len(url) > max_length:
        return False, f"URL is too long (max {max_length} characters)"

    if url != url.strip() or any(c.isspace() for c in url):
        return False, "URL must not contain whitespace"

    try:
        result = urlparse(url)
    except ValueError as e:
        return False, f"Invalid URL format: {e}"

    if result.scheme not in ("http", "https"):
        return False, "URL must use http or https protocol"

    if not result.netloc or not result.hostname:
        return False, "URL must have a valid domain"

    return True, ""


def is_reserved_word(key: str) -> bool:
    """True if ``key`` collides with a service route."""
    return key.lower() in RESERVED_WORDS


def normalize_expiry(expires_at: Optional[datetime]) -> Optional[datetime]:
    """Return ``expires_at`` as an aware UTC datetime (naive means UTC)."""
    if expires_at is None:
        return None
    if expires_at.tzinfo is None:
        return expires_at.replace(tzinfo=timezone.utc)
    return expires_at.astimezone(timezone.utc)


def is_valid_expiry(expires_at: Optional[datetime], now: Optional[datetime] = None) -> Tuple[bool, str]:
    """Validate an optional expiry; it must lie strictly in the future."""
    if expires_at is None:
        return True, ""
    now = now or datetime.now(timezone.utc)
    if normalize_expiry(expires_at) <= now:
        return False, "Expiration date must be in the future"
    return True, ""
