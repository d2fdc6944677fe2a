"""Business logic service for short links."""

import logging
import uuid
from typing import Optional, Dict, Any
from datetime import datetime, timezone

from .shortcode import ShortCodeGenerator
from .database.base import LinkStoreBase
from .database.cache import RedisCache
from .database.models import ShortLink, ClickEvent, LinkPage
from .common.validators import is_valid_url, is_valid_expiry, is_reserved_word, normalize_expiry
from .errors import (
    InvalidUrl,
    InvalidAlias,
    InvalidExpiry,
    AliasTaken,
    GenerationExhausted,
    NotFound,
    Expired,
    Unauthorized,
    StoreError,
    DuplicateKeyError,
)


MAX_PAGE_SIZE = 100


class LinkService:
    """Service layer for code assignment, redirect resolution and analytics."""

    def __init__(
        self,
        db: LinkStoreBase,
        cache: Optional[RedisCache] = None,
        short_code_generator: Optional[ShortCodeGenerator] = None,
        logger: Optional[logging.Logger] = None,
        enable_custom_aliases: bool = True,
        max_collision_retries: int = 10,
        max_url_length: int = 2048,
    ):
        """Initialize link service.

        Args:
            db: Link store
            cache: Optional lookup cache
            short_code_generator: Optional short code generator
            logger: Optional logger
            enable_custom_aliases: Whether callers may choose their own alias
            max_collision_retries: Attempts before random generation gives up
            max_url_length: Longest accepted original URL
        """
        self.db = db
        self.cache = cache
        self.generator = short_code_generator or ShortCodeGenerator()
        self.logger = logger or logging.getLogger(__name__)
        self.enable_custom_aliases = enable_custom_aliases
        self.max_collision_retries = max(1, max_collision_retries)
        self.max_url_length = max_url_length

    @property
    def cache_enabled(self) -> bool:
        return self.cache is not None and self.cache.enabled

    # Code assignment

    async def assign_code(self, custom_alias: Optional[str] = None) -> str:
        """Resolve the code a new link will be stored under.

        With an alias the alias itself becomes the code, after validation and
        a collision check against both codes and aliases. Without one, random
        codes are drawn until one is free or the retry cap is reached.

        The check is not atomic with the later insert; the store's unique
        indexes make the final decision (see ``create_link``).

        Raises:
            InvalidAlias: Alias fails validation or aliases are disabled
            AliasTaken: Alias already used as a code or alias
            GenerationExhausted: No free random code within the retry cap
        """
        if custom_alias is not None:
            return await self._assign_alias(custom_alias)

        for attempt in range(1, self.max_collision_retries + 1):
            code = await self._draw_code(attempt)
            if code is not None:
                return code

        raise GenerationExhausted(
            details={"attempts": self.max_collision_retries},
        )

    async def _draw_code(self, attempt: int) -> Optional[str]:
        """One random draw; None when the code is reserved or already stored."""
        code = self.generator.generate_random()
        if is_reserved_word(code) or await self.db.code_exists(code):
            self.logger.debug(f"Collision on generated code {code} (attempt {attempt})")
            return None
        if attempt > 1:
            self.logger.debug(f"Generated code after {attempt} attempts: {code}")
        return code

    async def _assign_alias(self, alias: str) -> str:
        if not self.enable_custom_aliases:
            raise InvalidAlias("Custom aliases are not enabled")
        if not self.generator.is_valid_alias(alias):
            raise InvalidAlias()
        if is_reserved_word(alias):
            raise InvalidAlias(f"'{alias}' is a reserved word and cannot be used")
        if await self.db.lookup_key_exists(alias):
            raise AliasTaken()
        return alias

    async def create_link(
        self,
        original_url: str,
        custom_alias: Optional[str] = None,
        expires_at: Optional[datetime] = None,
        owner_id: Optional[str] = None,
    ) -> ShortLink:
        """Create a new short link.

        Args:
            original_url: Destination URL (http or https)
            custom_alias: Optional alias to use instead of a random code
            expires_at: Optional expiry; must be in the future
            owner_id: Optional creator identity

        Returns:
            The stored link

        Raises:
            InvalidUrl, InvalidExpiry, InvalidAlias, AliasTaken, GenerationExhausted
        """
        now = datetime.now(timezone.utc)

        is_valid, error = is_valid_url(original_url, self.max_url_length)
        if not is_valid:
            raise InvalidUrl(f"Invalid URL: {error}")

        is_valid, error = is_valid_expiry(expires_at, now)
        if not is_valid:
            raise InvalidExpiry(error)
        expires_at = normalize_expiry(expires_at)

        if custom_alias == "":
            custom_alias = None

        if custom_alias is not None:
            code = await self.assign_code(custom_alias)
            try:
                link = await self.db.insert_link(
                    self._new_link(original_url, code, custom_alias, expires_at, owner_id, now)
                )
            except DuplicateKeyError:
                # Another request claimed the alias between check and insert
                raise AliasTaken()
        else:
            link = await self._insert_with_random_code(original_url, expires_at, owner_id, now)

        if self.cache_enabled:
            await self.cache.set_entry(link.code, self._cache_entry(link))

        self.logger.info(f"Created short link: {link.code} -> {original_url}")
        return link

    async def _insert_with_random_code(
        self,
        original_url: str,
        expires_at: Optional[datetime],
        owner_id: Optional[str],
        now: datetime,
    ) -> ShortLink:
        # Pre-check misses and insert-time duplicates count against one cap
        for attempt in range(1, self.max_collision_retries + 1):
            code = await self._draw_code(attempt)
            if code is None:
                continue
            try:
                return await self.db.insert_link(
                    self._new_link(original_url, code, None, expires_at, owner_id, now)
                )
            except DuplicateKeyError:
                self.logger.warning(
                    f"Code {code} was taken concurrently (attempt {attempt}), regenerating"
                )

        raise GenerationExhausted(details={"attempts": self.max_collision_retries})

    @staticmethod
    def _new_link(
        original_url: str,
        code: str,
        custom_alias: Optional[str],
        expires_at: Optional[datetime],
        owner_id: Optional[str],
        now: datetime,
    ) -> ShortLink:
        return ShortLink(
            id=uuid.uuid4().hex,
            original_url=original_url,
            code=code,
            custom_alias=custom_alias,
            owner_id=owner_id,
            expires_at=expires_at,
            created_at=now,
            updated_at=now,
        )

    # Redirect resolution

    async def resolve(
        self,
        lookup_key: str,
        ip: Optional[str] = None,
        user_agent: Optional[str] = None,
        referrer: Optional[str] = None,
    ) -> str:
        """Resolve a lookup key to its destination and record the click.

        Click recording is best-effort: if the store fails while writing the
        click, the failure is logged and the destination is still returned.

        Args:
            lookup_key: Short code or custom alias from the request path
            ip: Visitor IP (recorded as "unknown" when missing)
            user_agent: Visitor user agent (recorded as "unknown" when missing)
            referrer: Referring page (recorded as "direct" when missing)

        Returns:
            The original URL

        Raises:
            NotFound: No active link matches the key
            Expired: The link's expiry has passed
            StoreUnavailable: The lookup itself failed
        """
        now = datetime.now(timezone.utc)

        link = await self._lookup(lookup_key)
        if link is None:
            self.logger.info(f"Lookup key not found: {lookup_key}")
            raise NotFound()

        if link.is_expired(now):
            self.logger.info(f"Lookup key expired: {lookup_key}")
            raise Expired()

        event = ClickEvent.build(ip=ip, user_agent=user_agent, referrer=referrer, timestamp=now)
        await self._record_click(link, event, now)

        return link.original_url

    async def _lookup(self, lookup_key: str) -> Optional[ShortLink]:
        if self.cache_enabled:
            entry = await self.cache.get_entry(lookup_key)
            if entry is not None:
                self.logger.debug(f"Cache hit for {lookup_key}")
                return ShortLink.from_dict(entry)

        link = await self.db.find_by_lookup_key(lookup_key)
        if link is not None and self.cache_enabled:
            await self.cache.set_entry(lookup_key, self._cache_entry(link))
        return link

    async def _record_click(self, link: ShortLink, event: ClickEvent, now: datetime) -> bool:
        try:
            recorded = await self.db.record_click(link.id, event, now)
        except StoreError as e:
            self.logger.warning(f"Click on {link.code} not recorded, redirecting anyway: {e}")
            return False

        if not recorded:
            self.logger.warning(f"Click on {link.code} not recorded: link no longer active")
        return recorded

    @staticmethod
    def _cache_entry(link: ShortLink) -> Dict[str, Any]:
        return {
            "id": link.id,
            "original_url": link.original_url,
            "code": link.code,
            "custom_alias": link.custom_alias,
            "expires_at": link.expires_at.isoformat() if link.expires_at else None,
            "created_at": link.created_at.isoformat(),
        }

    # Owner-scoped operations

    @staticmethod
    def _require_owner(owner_id: Optional[str]) -> str:
        if not owner_id:
            raise Unauthorized()
        return owner_id

    async def get_link(self, link_id: str, owner_id: Optional[str]) -> ShortLink:
        """Get one of the owner's links, or raise NotFound."""
        owner_id = self._require_owner(owner_id)
        link = await self.db.get_link(link_id, owner_id=owner_id)
        if link is None:
            raise NotFound()
        return link

    async def list_links(
        self,
        owner_id: Optional[str],
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
    ) -> LinkPage:
        """List the owner's links, newest first."""
        owner_id = self._require_owner(owner_id)
        page = max(page, 1)
        limit = min(max(limit, 1), MAX_PAGE_SIZE)

        items, total = await self.db.list_links(
            owner_id,
            offset=(page - 1) * limit,
            limit=limit,
            search=search or None,
        )
        return LinkPage(items=items, total=total, current_page=page, limit=limit)

    async def delete_link(self, link_id: str, owner_id: Optional[str]) -> ShortLink:
        """Delete one of the owner's links.

        Returns:
            The deleted link

        Raises:
            NotFound: Link missing or owned by someone else
        """
        owner_id = self._require_owner(owner_id)
        link = await self.db.delete_link(link_id, owner_id)
        if link is None:
            raise NotFound()

        if self.cache_enabled:
            await self.cache.delete_entries(link.code, link.custom_alias)

        self.logger.info(f"Deleted short link: {link.code}")
        return link

    async def get_analytics(self, link_id: str, owner_id: Optional[str]) -> Dict[str, Any]:
        """Click analytics taken directly from the stored link."""
        link = await self.get_link(link_id, owner_id)
        return {
            "total_clicks": link.click_count,
            "click_history": link.click_history,
            "created_at": link.created_at,
            "last_clicked": link.last_clicked,
        }

    # Service-wide operations

    async def sweep_expired(self, now: Optional[datetime] = None) -> int:
        """Delete links whose expiry has passed.

        Returns:
            Number of deleted links
        """
        now = now or datetime.now(timezone.utc)
        deleted = await self.db.delete_expired(now)
        if deleted:
            self.logger.info(f"Swept {deleted} expired links")
        return deleted

    async def get_statistics(self) -> Dict[str, Any]:
        """Get service statistics.

        Returns:
            Dictionary with statistics
        """
        db_stats = await self.db.get_statistics(datetime.now(timezone.utc))

        return {
            **db_stats,
            "cache_enabled": self.cache_enabled,
            "custom_aliases_enabled": self.enable_custom_aliases,
        }

    async def health_check(self) -> Dict[str, bool]:
        """Perform health check.

        Returns:
            Dictionary with health status
        """
        db_healthy = await self.db.health_check()

        cache_healthy = True
        if self.cache_enabled:
            cache_healthy = await self.cache.ping()

        return {
            "database": db_healthy,
            "cache": cache_healthy,
            "overall": db_healthy and cache_healthy,
        }

    async def close(self) -> None:
        """Close store and cache connections."""
        await self.db.close()
        if self.cache:
            await self.cache.close()
