"""Tests for service layer."""

from datetime import datetime, timezone

import pytest

from shortlinks.database.memory import InMemoryLinkStore
from shortlinks.errors import (
    InvalidUrl,
    InvalidAlias,
    InvalidExpiry,
    AliasTaken,
    GenerationExhausted,
    NotFound,
    Expired,
    Unauthorized,
    StoreUnavailable,
    DuplicateKeyError,
)
from shortlinks.service import LinkService, MAX_PAGE_SIZE
from shortlinks.shortcode import ShortCodeGenerator
from conftest import OWNER, OTHER_OWNER, past, future


class SequenceGenerator(ShortCodeGenerator):
    """Hands out codes from a fixed list, then repeats the last one."""

    def __init__(self, codes):
        super().__init__()
        self.codes = list(codes)
        self.calls = 0

    def generate_random(self, length=None):
        self.calls += 1
        if len(self.codes) > 1:
            return self.codes.pop(0)
        return self.codes[0]


class RacingStore(InMemoryLinkStore):
    """Rejects the first ``failures`` inserts as if another writer got there first."""

    def __init__(self, failures=1, field="code"):
        super().__init__()
        self.failures = failures
        self.field = field
        self.insert_attempts = 0

    async def insert_link(self, link):
        self.insert_attempts += 1
        if self.insert_attempts <= self.failures:
            raise DuplicateKeyError(self.field, getattr(link, self.field))
        return await super().insert_link(link)


class FailingClickStore(InMemoryLinkStore):
    async def record_click(self, link_id, event, now):
        raise StoreUnavailable("connection reset")


class FailingLookupStore(InMemoryLinkStore):
    async def find_by_lookup_key(self, key):
        raise StoreUnavailable("connection refused")


class TestLinkCreation:
    """Test link creation and code assignment."""

    @pytest.mark.asyncio
    async def test_create_link(self, service, sample_urls):
        """Test creating a link with a generated code."""
        link = await service.create_link(sample_urls[0])

        assert len(link.code) == 6
        assert link.original_url == sample_urls[0]
        assert link.custom_alias is None
        assert link.click_count == 0
        assert link.click_history == []
        assert link.is_active
        assert link.created_at is not None

    @pytest.mark.asyncio
    async def test_create_with_custom_alias(self, service, sample_urls):
        """Test the alias becomes the lookup code."""
        link = await service.create_link(sample_urls[0], custom_alias="my-link")

        assert link.code == "my-link"
        assert link.custom_alias == "my-link"
        assert await service.resolve("my-link") == sample_urls[0]

    @pytest.mark.asyncio
    async def test_empty_alias_means_generated_code(self, service, sample_urls):
        link = await service.create_link(sample_urls[0], custom_alias="")

        assert link.custom_alias is None
        assert len(link.code) == 6

    @pytest.mark.asyncio
    @pytest.mark.parametrize("alias", [" promo ", "promo\n", "   "])
    async def test_padded_alias_rejected(self, service, test_db, sample_urls, alias):
        with pytest.raises(InvalidAlias):
            await service.create_link(sample_urls[0], custom_alias=alias)

        assert not await test_db.lookup_key_exists("promo")

    @pytest.mark.asyncio
    async def test_create_duplicate_alias(self, service, sample_urls):
        """Test duplicate alias rejection."""
        await service.create_link(sample_urls[0], custom_alias="duplicate")

        with pytest.raises(AliasTaken):
            await service.create_link(sample_urls[1], custom_alias="duplicate")

    @pytest.mark.asyncio
    async def test_alias_colliding_with_generated_code(self, service, sample_urls):
        link = await service.create_link(sample_urls[0])

        with pytest.raises(AliasTaken):
            await service.create_link(sample_urls[1], custom_alias=link.code)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("alias", ["ab", "x" * 21, "bad alias", "no!pe"])
    async def test_invalid_alias(self, service, sample_urls, alias):
        with pytest.raises(InvalidAlias):
            await service.create_link(sample_urls[0], custom_alias=alias)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("alias", ["api", "health", "Stats", "URLS"])
    async def test_reserved_alias(self, service, sample_urls, alias):
        with pytest.raises(InvalidAlias, match="reserved"):
            await service.create_link(sample_urls[0], custom_alias=alias)

    @pytest.mark.asyncio
    async def test_aliases_disabled(self, test_db, sample_urls):
        service = LinkService(db=test_db, enable_custom_aliases=False)

        with pytest.raises(InvalidAlias, match="not enabled"):
            await service.create_link(sample_urls[0], custom_alias="my-link")

    @pytest.mark.asyncio
    async def test_invalid_url(self, service):
        """Test invalid URL rejection."""
        with pytest.raises(InvalidUrl, match="Invalid URL"):
            await service.create_link("not-a-url")

        with pytest.raises(InvalidUrl):
            await service.create_link("ftp://example.com/file")

    @pytest.mark.asyncio
    async def test_invalid_url_does_not_touch_store(self, test_db, service):
        with pytest.raises(InvalidUrl):
            await service.create_link("javascript:alert(1)")

        assert (await test_db.get_statistics(datetime.now(timezone.utc)))["total_links"] == 0

    @pytest.mark.asyncio
    async def test_url_too_long(self, test_db, sample_urls):
        service = LinkService(db=test_db, max_url_length=30)

        with pytest.raises(InvalidUrl, match="too long"):
            await service.create_link("https://example.com/" + "a" * 50)

    @pytest.mark.asyncio
    async def test_expiry_in_past(self, service, sample_urls):
        with pytest.raises(InvalidExpiry):
            await service.create_link(sample_urls[0], expires_at=past())

    @pytest.mark.asyncio
    async def test_expiry_stored_as_utc(self, service, sample_urls):
        expires_at = future().replace(tzinfo=None)

        link = await service.create_link(sample_urls[0], expires_at=expires_at)

        assert link.expires_at == expires_at.replace(tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_owner_recorded(self, service, sample_urls):
        link = await service.create_link(sample_urls[0], owner_id=OWNER)
        assert link.owner_id == OWNER


class TestCodeAssignment:
    """Test collision handling during code assignment."""

    @pytest.mark.asyncio
    async def test_collision_retries_with_new_code(self, test_db, store_link):
        await store_link("taken1")
        generator = SequenceGenerator(["taken1", "fresh1"])
        service = LinkService(db=test_db, short_code_generator=generator)

        assert await service.assign_code() == "fresh1"
        assert generator.calls == 2

    @pytest.mark.asyncio
    async def test_generation_exhausted(self, test_db, store_link):
        await store_link("taken1")
        generator = SequenceGenerator(["taken1"])
        service = LinkService(db=test_db, short_code_generator=generator, max_collision_retries=4)

        with pytest.raises(GenerationExhausted) as exc_info:
            await service.assign_code()

        assert generator.calls == 4
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_assign_alias_checks_existing_aliases(self, service, sample_urls):
        await service.create_link(sample_urls[0], custom_alias="taken")

        with pytest.raises(AliasTaken):
            await service.assign_code("taken")
        assert await service.assign_code("free-one") == "free-one"

    @pytest.mark.asyncio
    async def test_duplicate_on_insert_regenerates(self, sample_urls):
        store = RacingStore(failures=1)
        generator = SequenceGenerator(["raced1", "final1"])
        service = LinkService(db=store, short_code_generator=generator)

        link = await service.create_link(sample_urls[0])

        assert link.code == "final1"
        assert store.insert_attempts == 2

    @pytest.mark.asyncio
    async def test_duplicate_on_insert_exhausts(self, sample_urls):
        store = RacingStore(failures=100)
        service = LinkService(db=store, max_collision_retries=3)

        with pytest.raises(GenerationExhausted):
            await service.create_link(sample_urls[0])
        assert store.insert_attempts == 3

    @pytest.mark.asyncio
    async def test_collisions_and_duplicates_share_one_cap(self, sample_urls):
        class BusyStore(RacingStore):
            """Reports most codes as taken and loses every insert race."""

            def __init__(self):
                super().__init__(failures=1000)
                self.checks = 0

            async def code_exists(self, code):
                self.checks += 1
                return self.checks % 10 != 0

        store = BusyStore()
        generator = SequenceGenerator([f"code{i:02d}" for i in range(200)])
        service = LinkService(db=store, short_code_generator=generator, max_collision_retries=10)

        with pytest.raises(GenerationExhausted):
            await service.create_link(sample_urls[0])

        assert generator.calls == 10
        assert store.checks == 10
        assert store.insert_attempts == 1

    @pytest.mark.asyncio
    async def test_reserved_word_never_generated(self, test_db):
        generator = SequenceGenerator(["health", "static", "fresh1"])
        service = LinkService(db=test_db, short_code_generator=generator)

        assert await service.assign_code() == "fresh1"
        assert generator.calls == 3

    @pytest.mark.asyncio
    async def test_duplicate_alias_on_insert(self, sample_urls):
        store = RacingStore(failures=1, field="custom_alias")
        service = LinkService(db=store)

        with pytest.raises(AliasTaken):
            await service.create_link(sample_urls[0], custom_alias="contested")
        assert store.insert_attempts == 1


class TestResolve:
    """Test redirect resolution and click recording."""

    @pytest.mark.asyncio
    async def test_resolve_records_click(self, service, test_db, sample_urls):
        link = await service.create_link(sample_urls[0])

        url = await service.resolve(
            link.code,
            ip="203.0.113.5",
            user_agent="Mozilla/5.0",
            referrer="https://news.example.com",
        )

        assert url == sample_urls[0]
        stored = await test_db.get_link(link.id)
        assert stored.click_count == 1
        event = stored.click_history[0]
        assert event.ip == "203.0.113.5"
        assert event.user_agent == "Mozilla/5.0"
        assert event.referrer == "https://news.example.com"

    @pytest.mark.asyncio
    async def test_create_then_resolve(self, service, test_db):
        link = await service.create_link("https://example.com/page")

        assert len(link.code) == 6
        assert await service.resolve(link.code) == "https://example.com/page"
        assert (await test_db.get_link(link.id)).click_count == 1

    @pytest.mark.asyncio
    async def test_missing_metadata_uses_sentinels(self, service, test_db, sample_urls):
        link = await service.create_link(sample_urls[0])

        await service.resolve(link.code)

        event = (await test_db.get_link(link.id)).click_history[0]
        assert event.ip == "unknown"
        assert event.user_agent == "unknown"
        assert event.referrer == "direct"

    @pytest.mark.asyncio
    async def test_click_count_matches_history(self, service, test_db, sample_urls):
        link = await service.create_link(sample_urls[0])

        for _ in range(5):
            await service.resolve(link.code)

        stored = await test_db.get_link(link.id)
        assert stored.click_count == 5
        assert len(stored.click_history) == 5
        timestamps = [event.timestamp for event in stored.click_history]
        assert timestamps == sorted(timestamps)

    @pytest.mark.asyncio
    async def test_resolve_unknown_key(self, service):
        with pytest.raises(NotFound):
            await service.resolve("nonexistent")

    @pytest.mark.asyncio
    async def test_resolve_inactive_link(self, service, store_link):
        await store_link("off123", is_active=False)

        with pytest.raises(NotFound):
            await service.resolve("off123")

    @pytest.mark.asyncio
    async def test_resolve_expired_link(self, service, test_db, store_link):
        link = await store_link("old123", expires_at=past())

        with pytest.raises(Expired) as exc_info:
            await service.resolve("old123")

        assert exc_info.value.status_code == 410
        assert (await test_db.get_link(link.id)).click_count == 0

    @pytest.mark.asyncio
    async def test_resolve_unexpired_link(self, service, sample_urls):
        link = await service.create_link(sample_urls[0], expires_at=future())

        assert await service.resolve(link.code) == sample_urls[0]

    @pytest.mark.asyncio
    async def test_failed_click_write_still_redirects(self, sample_urls):
        store = FailingClickStore()
        service = LinkService(db=store)
        link = await service.create_link(sample_urls[0])

        assert await service.resolve(link.code) == sample_urls[0]
        assert (await store.get_link(link.id)).click_count == 0

    @pytest.mark.asyncio
    async def test_failed_lookup_propagates(self):
        service = LinkService(db=FailingLookupStore())

        with pytest.raises(StoreUnavailable):
            await service.resolve("abc123")


class TestOwnerOperations:
    """Test owner-scoped reads, listing and deletion."""

    @pytest.mark.asyncio
    async def test_owner_required(self, service):
        with pytest.raises(Unauthorized):
            await service.list_links(None)
        with pytest.raises(Unauthorized):
            await service.get_link("any", "")
        with pytest.raises(Unauthorized):
            await service.delete_link("any", None)

    @pytest.mark.asyncio
    async def test_get_link_hidden_from_other_owner(self, service, sample_urls):
        link = await service.create_link(sample_urls[0], owner_id=OWNER)

        assert (await service.get_link(link.id, OWNER)).code == link.code
        with pytest.raises(NotFound):
            await service.get_link(link.id, OTHER_OWNER)

    @pytest.mark.asyncio
    async def test_list_links(self, service, sample_urls):
        for url in sample_urls:
            await service.create_link(url, owner_id=OWNER)
        await service.create_link(sample_urls[0], owner_id=OTHER_OWNER)

        page = await service.list_links(OWNER, page=1, limit=2)

        assert page.total == 3
        assert page.total_pages == 2
        assert page.current_page == 1
        assert len(page.items) == 2

    @pytest.mark.asyncio
    async def test_list_links_clamps_paging(self, service, sample_urls):
        await service.create_link(sample_urls[0], owner_id=OWNER)

        page = await service.list_links(OWNER, page=0, limit=1000)

        assert page.current_page == 1
        assert page.limit == MAX_PAGE_SIZE

    @pytest.mark.asyncio
    async def test_list_links_search(self, service, sample_urls):
        for url in sample_urls:
            await service.create_link(url, owner_id=OWNER)

        page = await service.list_links(OWNER, search="github")

        assert page.total == 1
        assert page.items[0].original_url == sample_urls[1]

    @pytest.mark.asyncio
    async def test_delete_link(self, service, sample_urls):
        link = await service.create_link(sample_urls[0], custom_alias="gone", owner_id=OWNER)

        with pytest.raises(NotFound):
            await service.delete_link(link.id, OTHER_OWNER)

        deleted = await service.delete_link(link.id, OWNER)
        assert deleted.code == "gone"

        with pytest.raises(NotFound):
            await service.resolve("gone")
        with pytest.raises(NotFound):
            await service.delete_link(link.id, OWNER)

    @pytest.mark.asyncio
    async def test_analytics(self, service, sample_urls):
        link = await service.create_link(sample_urls[0], owner_id=OWNER)
        await service.resolve(link.code, ip="198.51.100.1")
        await service.resolve(link.code, ip="198.51.100.2")

        analytics = await service.get_analytics(link.id, OWNER)

        assert analytics["total_clicks"] == 2
        assert [event.ip for event in analytics["click_history"]] == ["198.51.100.1", "198.51.100.2"]
        assert analytics["last_clicked"] == analytics["click_history"][-1].timestamp
        assert analytics["created_at"] == link.created_at

    @pytest.mark.asyncio
    async def test_analytics_without_clicks(self, service, sample_urls):
        link = await service.create_link(sample_urls[0], owner_id=OWNER)

        analytics = await service.get_analytics(link.id, OWNER)

        assert analytics["total_clicks"] == 0
        assert analytics["last_clicked"] is None


class TestServiceWide:
    """Test sweeping, statistics and health."""

    @pytest.mark.asyncio
    async def test_sweep_expired(self, service, store_link, sample_urls):
        await store_link("old123", expires_at=past())
        live = await service.create_link(sample_urls[0], expires_at=future())

        assert await service.sweep_expired() == 1

        # Swept links are gone entirely
        with pytest.raises(NotFound):
            await service.resolve("old123")
        assert await service.resolve(live.code) == sample_urls[0]

    @pytest.mark.asyncio
    async def test_statistics(self, service, sample_urls):
        link = await service.create_link(sample_urls[0])
        await service.resolve(link.code)

        stats = await service.get_statistics()

        assert stats["total_links"] == 1
        assert stats["total_clicks"] == 1
        assert stats["cache_enabled"] is False
        assert stats["custom_aliases_enabled"] is True

    @pytest.mark.asyncio
    async def test_health_check(self, service):
        """Test health check."""
        health = await service.health_check()

        assert health == {"database": True, "cache": True, "overall": True}
