"""Abstract base class for link store implementations."""

from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any, Tuple
from datetime import datetime

from .models import ShortLink, ClickEvent


class LinkStoreBase(ABC):
    """Abstract base class for short link persistence.

    Implementations must enforce uniqueness of ``code`` and of
    ``custom_alias`` (absent aliases never collide) and must apply
    ``record_click`` as a single atomic mutation of one record.
    """

    def __init__(self, db_config: str):
        """Initialize store.

        Args:
            db_config: Store connection string
        """
        self.db_config = db_config

    @abstractmethod
    async def insert_link(self, link: ShortLink) -> ShortLink:
        """Insert a new link.

        Args:
            link: Fully populated link record

        Returns:
            The stored link

        Raises:
            DuplicateKeyError: If ``code`` or ``custom_alias`` already exists
            StoreUnavailable: On connection or timeout failures
        """
        pass

    @abstractmethod
    async def code_exists(self, code: str) -> bool:
        """Check whether any record already uses ``code``."""
        pass

    @abstractmethod
    async def lookup_key_exists(self, key: str) -> bool:
        """Check whether any record has ``code`` or ``custom_alias`` equal to ``key``."""
        pass

    @abstractmethod
    async def find_by_lookup_key(self, key: str) -> Optional[ShortLink]:
        """Find the active link whose code or custom alias equals ``key``.

        Expired links are still returned; the caller decides what expiry means.
        """
        pass

    @abstractmethod
    async def get_link(self, link_id: str, owner_id: Optional[str] = None) -> Optional[ShortLink]:
        """Get a link by id, optionally restricted to one owner."""
        pass

    @abstractmethod
    async def record_click(self, link_id: str, event: ClickEvent, now: datetime) -> bool:
        """Atomically increment ``click_count`` and append ``event``.

        The update only applies while the link is active and not expired at
        ``now``.

        Returns:
            True if a record was updated, False otherwise
        """
        pass

    @abstractmethod
    async def list_links(
        self,
        owner_id: str,
        offset: int = 0,
        limit: int = 10,
        search: Optional[str] = None,
    ) -> Tuple[List[ShortLink], int]:
        """List an owner's links, newest first.

        Returns:
            Tuple of (links on this page, total matching links)
        """
        pass

    @abstractmethod
    async def delete_link(self, link_id: str, owner_id: str) -> Optional[ShortLink]:
        """Delete an owner's link.

        Returns:
            The deleted link, or None if nothing matched
        """
        pass

    @abstractmethod
    async def delete_expired(self, now: datetime) -> int:
        """Delete links whose expiry is at or before ``now``.

        Returns:
            Number of deleted links
        """
        pass

    @abstractmethod
    async def get_statistics(self, now: datetime) -> Dict[str, Any]:
        """Get store statistics (total_links, total_clicks, active_links)."""
        pass

    async def ensure_schema(self) -> None:
        """Create tables and indexes if the backend needs them."""
        return None

    @abstractmethod
    async def close(self) -> None:
        """Close store connections."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the store is healthy.

        Returns:
            True if healthy, False otherwise
        """
        pass
