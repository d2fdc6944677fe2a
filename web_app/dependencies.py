"""Request-scoped helpers shared by the routers."""

from typing import Optional

from fastapi import Request

from shortlinks.service import LinkService
from shortlinks.common.headers import build_base_url, build_short_url


def get_service(request: Request) -> LinkService:
    return request.app.state.service


def get_owner_id(request: Request) -> Optional[str]:
    """Caller identity from the configured owner header, or None when absent."""
    header = request.app.state.config.owner_header
    owner_id = request.headers.get(header, "").strip()
    return owner_id or None


def short_url_for(request: Request, code: str) -> str:
    """Complete short URL for ``code`` as seen by this request's client."""
    config = request.app.state.config
    base_url = build_base_url(
        headers=dict(request.headers),
        fallback_base_url=config.base_url,
        request_scheme=request.url.scheme,
        request_host=request.headers.get("host"),
    )
    return build_short_url(
        short_code=code,
        base_url=base_url,
        path_prefix=config.path_prefix,
    )
