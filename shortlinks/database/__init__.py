"""Storage layer for short links."""

import logging
from typing import Optional

from .base import LinkStoreBase
from .memory import InMemoryLinkStore
from .postgres import PostgresLinkStore
from .cache import RedisCache
from .models import ShortLink, ClickEvent, LinkPage


def create_store(
    database_url: str,
    pool_max_size: int = 10,
    timeout_seconds: int = 30,
    create_tables: bool = False,
    logger: Optional[logging.Logger] = None,
) -> LinkStoreBase:
    """Build the store matching the URL scheme.

    ``memory://`` selects the in-process store; ``postgres://`` and
    ``postgresql://`` select PostgreSQL.
    """
    scheme = database_url.split("://", 1)[0].lower()
    if scheme == "memory":
        return InMemoryLinkStore(database_url, logger=logger)
    if scheme in ("postgres", "postgresql"):
        return PostgresLinkStore(
            database_url,
            pool_max_size=pool_max_size,
            connection_timeout_seconds=timeout_seconds,
            create_tables=create_tables,
            logger=logger,
        )
    raise ValueError(f"Unsupported database URL scheme: {scheme!r}")


__all__ = [
    "LinkStoreBase",
    "InMemoryLinkStore",
    "PostgresLinkStore",
    "RedisCache",
    "ShortLink",
    "ClickEvent",
    "LinkPage",
    "create_store",
]
