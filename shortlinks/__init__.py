"""Core business logic for the short link service."""

from .shortcode import ShortCodeGenerator
from .service import LinkService
from .sweeper import ExpiredLinkSweeper

__all__ = ["ShortCodeGenerator", "LinkService", "ExpiredLinkSweeper"]
