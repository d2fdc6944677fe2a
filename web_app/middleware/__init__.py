"""Middleware for the short link web app."""

from .headers import ForwardedHeadersMiddleware
from .logging import LoggingMiddleware
from .errors import register_exception_handlers

__all__ = ["ForwardedHeadersMiddleware", "LoggingMiddleware", "register_exception_handlers"]
