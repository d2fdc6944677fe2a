"""Common utilities for the short link service."""

from .validators import is_valid_url, is_valid_expiry, is_reserved_word, normalize_expiry
from .headers import (
    extract_forwarded_headers,
    build_base_url,
    build_short_url,
    client_ip,
    referrer_from_headers,
)
from .logging_config import setup_logging, get_logger

__all__ = [
    "is_valid_url",
    "is_valid_expiry",
    "is_reserved_word",
    "normalize_expiry",
    "extract_forwarded_headers",
    "build_base_url",
    "client_ip",
    "referrer_from_headers",
    "build_short_url",
    "setup_logging",
    "get_logger",
]
