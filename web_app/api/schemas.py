"""Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List, Any
from datetime import datetime


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys; snake_case input is accepted too."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ShortenRequest(CamelModel):
    """Request to shorten a URL."""

    original_url: str = Field(..., description="The URL to shorten", min_length=1)
    custom_alias: Optional[str] = Field(None, description="Optional custom alias")
    expires_at: Optional[datetime] = Field(None, description="Optional expiry, must be in the future")

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "originalUrl": "https://example.com/very/long/path/to/resource",
                },
                {
                    "originalUrl": "https://github.com/user/repo",
                    "customAlias": "myrepo",
                    "expiresAt": "2030-01-01T00:00:00Z",
                },
            ]
        }
    )


class ShortenResponse(CamelModel):
    """Response after shortening a URL."""

    id: str = Field(..., description="Link identifier")
    code: str = Field(..., description="The generated code or the custom alias")
    short_url: str = Field(..., description="The complete short URL")
    original_url: str = Field(..., description="The original long URL")
    custom_alias: Optional[str] = None
    expires_at: Optional[datetime] = None
    created_at: datetime = Field(..., description="Creation timestamp")


class ClickEventResponse(CamelModel):
    timestamp: datetime
    ip: str
    user_agent: str
    referrer: str


class LinkResponse(CamelModel):
    """A stored link as seen by its owner."""

    id: str
    code: str
    short_url: str
    original_url: str
    custom_alias: Optional[str] = None
    owner_id: Optional[str] = None
    click_count: int
    expires_at: Optional[datetime] = None
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None


class LinkListResponse(CamelModel):
    urls: List[LinkResponse]
    total: int
    total_pages: int
    current_page: int


class AnalyticsResponse(CamelModel):
    total_clicks: int
    click_history: List[ClickEventResponse]
    created_at: datetime
    last_clicked: Optional[datetime] = None


class MessageResponse(CamelModel):
    message: str


class HealthResponse(CamelModel):
    """Health check response."""

    status: str = Field(..., description="Overall status")
    database: str = Field(..., description="Database status")
    cache: str = Field(..., description="Cache status")
    timestamp: datetime = Field(..., description="Check timestamp")


class ErrorResponse(BaseModel):
    """Error response."""

    error: str = Field(..., description="Error message")
    detail: Optional[Any] = Field(None, description="Detailed error information")


class StatisticsResponse(CamelModel):
    """Statistics response."""

    total_links: int
    active_links: int
    total_clicks: int
    database: str
    cache_enabled: bool
    custom_aliases_enabled: bool
