"""Redirect routes implementation."""

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse

from shortlinks.service import LinkService
from shortlinks.common.headers import client_ip, referrer_from_headers
from ..dependencies import get_service

router = APIRouter()


@router.get(
    "/{lookup_key}",
    status_code=status.HTTP_302_FOUND,
    responses={
        302: {"description": "Redirect to the original URL"},
        404: {"description": "Unknown or inactive short link"},
        410: {"description": "Short link has expired"},
    },
    summary="Follow short link",
)
async def redirect_to_url(
    request: Request,
    lookup_key: str,
    service: LinkService = Depends(get_service),
):
    """Redirect a short code or custom alias to its original URL and record the click."""
    ip = getattr(request.state, "client_ip", None)
    if ip is None:
        ip = client_ip(
            request.headers.get("x-forwarded-for"),
            request.client.host if request.client else None,
        )

    original_url = await service.resolve(
        lookup_key,
        ip=ip,
        user_agent=request.headers.get("user-agent"),
        referrer=referrer_from_headers(dict(request.headers)),
    )

    # 302 so every visit comes back through here and is counted
    return RedirectResponse(url=original_url, status_code=status.HTTP_302_FOUND)
