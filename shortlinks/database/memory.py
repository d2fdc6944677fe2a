"""In-process link store.

Holds records in a dict guarded by an ``asyncio.Lock``. Used for tests and
for running the service without PostgreSQL (``database_url=memory://``).
Data does not survive a restart.
"""

import asyncio
import copy
import logging
from datetime import datetime
from typing import Optional, List, Dict, Any, Tuple

from .base import LinkStoreBase
from .models import ShortLink, ClickEvent
from ..errors import DuplicateKeyError


class InMemoryLinkStore(LinkStoreBase):
    """Dictionary-backed implementation of the link store."""

    def __init__(self, db_config: str = "memory://", logger: Optional[logging.Logger] = None):
        super().__init__(db_config)
        self.logger = logger or logging.getLogger(__name__)
        self._links: Dict[str, ShortLink] = {}
        self._lock = asyncio.Lock()

    def _find(self, key: str) -> Optional[ShortLink]:
        for link in self._links.values():
            if link.matches_lookup_key(key):
                return link
        return None

    async def insert_link(self, link: ShortLink) -> ShortLink:
        async with self._lock:
            for existing in self._links.values():
                if existing.code == link.code:
                    raise DuplicateKeyError("code", link.code)
                if link.custom_alias is not None and existing.custom_alias == link.custom_alias:
                    raise DuplicateKeyError("custom_alias", link.custom_alias)
            stored = copy.deepcopy(link)
            self._links[stored.id] = stored
        self.logger.debug(f"Stored link {link.id} with code {link.code}")
        return copy.deepcopy(stored)

    async def code_exists(self, code: str) -> bool:
        return any(link.code == code for link in self._links.values())

    async def lookup_key_exists(self, key: str) -> bool:
        return self._find(key) is not None

    async def find_by_lookup_key(self, key: str) -> Optional[ShortLink]:
        for link in self._links.values():
            if link.is_active and link.matches_lookup_key(key):
                return copy.deepcopy(link)
        return None

    async def get_link(self, link_id: str, owner_id: Optional[str] = None) -> Optional[ShortLink]:
        link = self._links.get(link_id)
        if link is None or (owner_id is not None and link.owner_id != owner_id):
            return None
        return copy.deepcopy(link)

    async def record_click(self, link_id: str, event: ClickEvent, now: datetime) -> bool:
        async with self._lock:
            link = self._links.get(link_id)
            if link is None or not link.is_active or link.is_expired(now):
                return False
            link.click_history.append(copy.deepcopy(event))
            link.click_count += 1
            link.updated_at = now
        return True

    async def list_links(
        self,
        owner_id: str,
        offset: int = 0,
        limit: int = 10,
        search: Optional[str] = None,
    ) -> Tuple[List[ShortLink], int]:
        links = [link for link in self._links.values() if link.owner_id == owner_id]
        if search:
            needle = search.lower()
            links = [
                link for link in links
                if needle in link.original_url.lower()
                or needle in link.code.lower()
                or (link.custom_alias and needle in link.custom_alias.lower())
            ]
        links.sort(key=lambda link: link.created_at, reverse=True)
        page = links[offset:offset + limit]
        return [copy.deepcopy(link) for link in page], len(links)

    async def delete_link(self, link_id: str, owner_id: str) -> Optional[ShortLink]:
        async with self._lock:
            link = self._links.get(link_id)
            if link is None or link.owner_id != owner_id:
                return None
            return self._links.pop(link_id)

    async def delete_expired(self, now: datetime) -> int:
        async with self._lock:
            expired = [
                link_id for link_id, link in self._links.items()
                if link.expires_at is not None and link.expires_at <= now
            ]
            for link_id in expired:
                del self._links[link_id]
        return len(expired)

    async def get_statistics(self, now: datetime) -> Dict[str, Any]:
        links = list(self._links.values())
        return {
            "total_links": len(links),
            "total_clicks": sum(link.click_count for link in links),
            "active_links": sum(1 for link in links if link.is_active and not link.is_expired(now)),
            "database": "memory",
        }

    async def close(self) -> None:
        return None

    async def health_check(self) -> bool:
        return True
