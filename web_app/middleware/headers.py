"""Forwarded headers middleware."""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from typing import Callable

from shortlinks.common.headers import client_ip


class ForwardedHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to extract X-Forwarded-* headers and the originating client IP."""

    async def dispatch(self, request: Request, call_next: Callable):
        """Process request and extract forwarded headers."""
        request.state.forwarded_proto = request.headers.get("x-forwarded-proto")
        request.state.forwarded_host = request.headers.get("x-forwarded-host")
        request.state.forwarded_for = request.headers.get("x-forwarded-for")
        request.state.client_ip = client_ip(
            request.state.forwarded_for,
            request.client.host if request.client else None,
        )

        response = await call_next(request)
        return response
