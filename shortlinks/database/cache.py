"""Redis cache of lookup-key entries for the redirect path."""

import json
import logging
from typing import Optional, Dict, Any

import redis.asyncio as redis


class RedisCache:
    """Maps a lookup key to the fields the redirect path needs.

    An entry holds the link id, original URL, code, alias and expiry, so a
    hit skips the store read while the click itself is still written to
    the store. Redis failures are logged and behave like misses; the
    store stays the source of truth.
    """

    KEY_PREFIX = "shortlinks:lookup:"

    def __init__(
        self,
        redis_url: Optional[str] = None,
        ttl_seconds: int = 3600,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize Redis cache.

        Args:
            redis_url: Redis connection URL (None disables the cache)
            ttl_seconds: Lifetime of each entry
            logger: Optional logger instance
        """
        self.redis_url = redis_url
        self.ttl_seconds = ttl_seconds
        self.logger = logger or logging.getLogger(__name__)
        self.enabled = redis_url is not None
        self.client: Optional[redis.Redis] = None

    @property
    def _ready(self) -> bool:
        return self.enabled and self.client is not None

    async def connect(self) -> None:
        """Open the client and verify it answers; disable the cache if not."""
        if not self.enabled:
            return

        self.client = redis.from_url(self.redis_url, encoding="utf-8", decode_responses=True)
        try:
            await self.client.ping()
        except redis.RedisError as e:
            self.logger.error(f"Redis unreachable, lookup cache disabled: {e}")
            self.enabled = False
            return
        self.logger.info(f"Lookup cache connected (ttl={self.ttl_seconds}s)")

    def get_cache_key(self, lookup_key: str) -> str:
        return f"{self.KEY_PREFIX}{lookup_key}"

    async def get_entry(self, lookup_key: str) -> Optional[Dict[str, Any]]:
        """Cached entry for ``lookup_key``, or None on a miss or error."""
        if not self._ready:
            return None

        key = self.get_cache_key(lookup_key)
        try:
            raw = await self.client.get(key)
            if raw is None:
                return None
            return json.loads(raw)
        except redis.RedisError as e:
            self.logger.error(f"Cache read failed for {lookup_key}: {e}")
            return None
        except ValueError:
            self.logger.warning(f"Discarding malformed cache entry for {lookup_key}")
            await self.delete_entries(lookup_key)
            return None

    async def set_entry(self, lookup_key: str, entry: Dict[str, Any]) -> bool:
        if not self._ready:
            return False

        try:
            await self.client.setex(self.get_cache_key(lookup_key), self.ttl_seconds, json.dumps(entry))
        except redis.RedisError as e:
            self.logger.error(f"Cache write failed for {lookup_key}: {e}")
            return False
        return True

    async def delete_entries(self, *lookup_keys: Optional[str]) -> bool:
        """Evict entries; None keys (e.g. a missing alias) are skipped.

        Returns:
            True if anything was evicted
        """
        keys = [self.get_cache_key(key) for key in lookup_keys if key]
        if not self._ready or not keys:
            return False

        try:
            return await self.client.delete(*keys) > 0
        except redis.RedisError as e:
            self.logger.error(f"Cache eviction failed for {lookup_keys}: {e}")
            return False

    async def ping(self) -> bool:
        """True when Redis answers, or when there is no cache to check."""
        if not self._ready:
            return True
        try:
            return bool(await self.client.ping())
        except redis.RedisError:
            return False

    async def close(self) -> None:
        if self.client is not None:
            await self.client.aclose()
            self.client = None
            self.logger.info("Redis connection closed")
