"""API routes implementation."""

from typing import Optional
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from shortlinks.service import LinkService, MAX_PAGE_SIZE
from shortlinks.database.models import ShortLink
from ..dependencies import get_service, get_owner_id, short_url_for
from .schemas import (
    ShortenRequest,
    ShortenResponse,
    LinkResponse,
    LinkListResponse,
    AnalyticsResponse,
    MessageResponse,
    HealthResponse,
    ErrorResponse,
    StatisticsResponse,
)

router = APIRouter()

OWNER_ERRORS = {
    401: {"model": ErrorResponse, "description": "Owner identity missing"},
    404: {"model": ErrorResponse, "description": "Link not found"},
}


def _link_response(request: Request, link: ShortLink) -> LinkResponse:
    return LinkResponse.model_validate(
        {**vars(link), "short_url": short_url_for(request, link.code)}
    )


@router.post(
    "/shorten",
    response_model=ShortenResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid URL, alias or expiry"},
        503: {"model": ErrorResponse, "description": "No free short code found"},
    },
    summary="Create short URL",
    description="Create a shortened URL. Optionally provide a custom alias and an expiry.",
)
async def shorten_url(
    request: Request,
    body: ShortenRequest,
    service: LinkService = Depends(get_service),
    owner_id: Optional[str] = Depends(get_owner_id),
):
    """Create a shortened URL."""
    link = await service.create_link(
        original_url=body.original_url,
        custom_alias=body.custom_alias,
        expires_at=body.expires_at,
        owner_id=owner_id,
    )

    return ShortenResponse(
        id=link.id,
        code=link.code,
        short_url=short_url_for(request, link.code),
        original_url=link.original_url,
        custom_alias=link.custom_alias,
        expires_at=link.expires_at,
        created_at=link.created_at,
    )


@router.get(
    "/urls",
    response_model=LinkListResponse,
    responses={401: OWNER_ERRORS[401]},
    summary="List links",
    description="List the caller's links, newest first, optionally filtered by URL or code.",
)
async def list_urls(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE),
    search: Optional[str] = Query(None, max_length=200),
    service: LinkService = Depends(get_service),
    owner_id: Optional[str] = Depends(get_owner_id),
):
    result = await service.list_links(owner_id, page=page, limit=limit, search=search)

    return LinkListResponse(
        urls=[_link_response(request, link) for link in result.items],
        total=result.total,
        total_pages=result.total_pages,
        current_page=result.current_page,
    )


@router.get(
    "/urls/{link_id}",
    response_model=LinkResponse,
    responses=OWNER_ERRORS,
    summary="Get link",
)
async def get_url(
    request: Request,
    link_id: str,
    service: LinkService = Depends(get_service),
    owner_id: Optional[str] = Depends(get_owner_id),
):
    link = await service.get_link(link_id, owner_id)
    return _link_response(request, link)


@router.delete(
    "/urls/{link_id}",
    response_model=MessageResponse,
    responses=OWNER_ERRORS,
    summary="Delete link",
)
async def delete_url(
    link_id: str,
    service: LinkService = Depends(get_service),
    owner_id: Optional[str] = Depends(get_owner_id),
):
    await service.delete_link(link_id, owner_id)
    return MessageResponse(message="URL deleted successfully")


@router.get(
    "/urls/{link_id}/analytics",
    response_model=AnalyticsResponse,
    responses=OWNER_ERRORS,
    summary="Get link analytics",
    description="Total clicks, the full click history and the time of the last click.",
)
async def get_url_analytics(
    link_id: str,
    service: LinkService = Depends(get_service),
    owner_id: Optional[str] = Depends(get_owner_id),
):
    analytics = await service.get_analytics(link_id, owner_id)
    return AnalyticsResponse(
        total_clicks=analytics["total_clicks"],
        click_history=[event.to_dict() for event in analytics["click_history"]],
        created_at=analytics["created_at"],
        last_clicked=analytics["last_clicked"],
    )


@router.get(
    "/stats",
    response_model=StatisticsResponse,
    summary="Get statistics",
    description="Get service-wide statistics.",
)
async def get_statistics(service: LinkService = Depends(get_service)):
    """Get service statistics."""
    stats = await service.get_statistics()

    return StatisticsResponse.model_validate(stats)


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse, "description": "Service unhealthy"}},
    summary="Health check",
    description="Check if the service is healthy.",
)
async def health_check(service: LinkService = Depends(get_service)):
    """Health check endpoint for load balancers and monitoring."""
    health = await service.health_check()

    response = HealthResponse(
        status="healthy" if health["overall"] else "unhealthy",
        database="healthy" if health["database"] else "unhealthy",
        cache="healthy" if health["cache"] else "unhealthy",
        timestamp=datetime.now(timezone.utc),
    )
    if not health["overall"]:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=response.model_dump(mode="json", by_alias=True),
        )
    return response
