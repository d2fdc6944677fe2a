"""Tests for the expired link sweeper."""

import asyncio

import pytest

from shortlinks.database.memory import InMemoryLinkStore
from shortlinks.errors import StoreUnavailable
from shortlinks.service import LinkService
from shortlinks.sweeper import ExpiredLinkSweeper
from conftest import past, future


class FailingSweepStore(InMemoryLinkStore):
    async def delete_expired(self, now):
        raise StoreUnavailable("connection refused")


@pytest.mark.asyncio
class TestExpiredLinkSweeper:
    """Test background expiry sweeping."""

    async def test_run_once_removes_only_expired(self, service, test_db, store_link):
        await store_link("old123", expires_at=past())
        await store_link("new123", expires_at=future())
        sweeper = ExpiredLinkSweeper(service, interval_seconds=60)

        assert await sweeper.run_once() == 1
        assert not await test_db.code_exists("old123")
        assert await test_db.code_exists("new123")

    async def test_failed_sweep_is_logged_not_raised(self):
        sweeper = ExpiredLinkSweeper(LinkService(db=FailingSweepStore()), interval_seconds=60)

        assert await sweeper.run_once() == 0

    async def test_background_task_sweeps(self, service, test_db, store_link):
        await store_link("old123", expires_at=past())
        sweeper = ExpiredLinkSweeper(service, interval_seconds=0.01)

        sweeper.start()
        assert sweeper.running
        for _ in range(100):
            if not await test_db.code_exists("old123"):
                break
            await asyncio.sleep(0.01)
        await sweeper.stop()

        assert not await test_db.code_exists("old123")
        assert not sweeper.running

    async def test_zero_interval_disables(self, service):
        sweeper = ExpiredLinkSweeper(service, interval_seconds=0)

        sweeper.start()

        assert not sweeper.enabled
        assert not sweeper.running
        await sweeper.stop()

    async def test_unexpected_error_keeps_sweeping(self, test_db, store_link):
        class FlakyService(LinkService):
            def __init__(self, db):
                super().__init__(db=db)
                self.calls = 0

            async def sweep_expired(self, now=None):
                self.calls += 1
                if self.calls == 1:
                    raise RuntimeError("boom")
                return await super().sweep_expired(now)

        await store_link("old123", expires_at=past())
        service = FlakyService(test_db)
        sweeper = ExpiredLinkSweeper(service, interval_seconds=0.01)

        sweeper.start()
        for _ in range(100):
            if not await test_db.code_exists("old123"):
                break
            await asyncio.sleep(0.01)

        assert sweeper.running
        await sweeper.stop()

        assert service.calls >= 2
        assert not await test_db.code_exists("old123")
