"""Header parsing utilities for short links."""

from typing import Dict, Optional


def extract_forwarded_headers(headers: Dict[str, str]) -> Dict[str, Optional[str]]:
    """Extract X-Forwarded-* headers from request.
    
    Args:
        headers: Request headers dictionary
        
    Returns:
        Dictionary with forwarded_proto, forwarded_host, forwarded_for
    """
    # Convert headers to lowercase for case-insensitive lookup
    headers_lower = {k.lower(): v for k, v in headers.items()}
    
    return {
        "forwarded_proto": headers_lower.get("x-forwarded-proto"),
        "forwarded_host": headers_lower.get("x-forwarded-host"),
        "forwarded_for": headers_lower.get("x-forwarded-for"),
    }


def build_base_url(
    headers: Dict[str, str],
    fallback_base_url: str,
    request_scheme: Optional[str] = None,
    request_host: Optional[str] = None,
) -> str:
    """Build base URL from headers or fallback.
    
    Priority:
    1. X-Forwarded-Proto + X-Forwarded-Host
    2. Request scheme + host
    3. Fallback base URL from config
    
    Args:
        headers: Request headers
        fallback_base_url: Fallback base URL from configuration
        request_scheme: Request scheme (http/https)
        request_host: Request host
        
    Returns:
        Base URL (e.g., https://example.com)
    """
    forwarded = extract_forwarded_headers(headers)
    
    if forwarded["forwarded_proto"] and forwarded["forwarded_host"]:
        return f"{forwarded['forwarded_proto']}://{forwarded['forwarded_host']}"
    
    if request_scheme and request_host:
        return f"{request_scheme}://{request_host}"
    
    return fallback_base_url.rstrip("/")


def client_ip(forwarded_for: Optional[str], peer_host: Optional[str] = None) -> Optional[str]:
    """Originating client IP: first X-Forwarded-For hop, else the socket peer."""
    if forwarded_for:
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop
    return peer_host or None


def referrer_from_headers(headers: Dict[str, str]) -> Optional[str]:
    """Referrer from ``Referer`` (or the ``Referrer`` misspelling some clients send)."""
    headers_lower = {k.lower(): v for k, v in headers.items()}
    return headers_lower.get("referer") or headers_lower.get("referrer") or None


def build_short_url(short_code: str, base_url: str, path_prefix: str = "") -> str:
    """Join base URL, optional path prefix and lookup key.

    ``build_short_url("abc123", "https://sho.rt/", "/s/")`` gives
    ``https://sho.rt/s/abc123``.
    """
    parts = [base_url.rstrip("/")]
    if path_prefix.strip("/"):
        parts.append(path_prefix.strip("/"))
    parts.append(short_code)
    return "/".join(parts)
