"""Tests for the SQLite connection pool."""

import asyncio
from datetime import UTC, datetime, timedelta, timezone
from pathlib import Path

import aiosqlite
import pytest

from partstock.core.exceptions import DatabaseBusyError
from partstock.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    format_timestamp,
    parse_timestamp,
    use_connection,
)


@pytest.fixture
async def pool(tmp_path: Path):
    pool = ConnectionPool(tmp_path / "pool.db", pool_size=2, busy_timeout=50)
    await pool.initialize()
    async with pool.acquire() as conn:
        await conn.execute("CREATE TABLE items (id INTEGER PRIMARY KEY, qty INTEGER NOT NULL)")
        await conn.commit()
    try:
        yield pool
    finally:
        await pool.close()


class TestConnectionPool:
    async def test_pragmas_applied(self, pool: ConnectionPool):
        async with pool.acquire() as conn:
            cursor = await conn.execute("PRAGMA foreign_keys")
            assert (await cursor.fetchone())[0] == 1
            cursor = await conn.execute("PRAGMA journal_mode")
            assert (await cursor.fetchone())[0] == "wal"

    async def test_transaction_commits(self, pool: ConnectionPool):
        async with pool.transaction() as conn:
            await conn.execute("INSERT INTO items (qty) VALUES (3)")
        async with pool.acquire() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM items")
            assert (await cursor.fetchone())[0] == 1

    async def test_transaction_rolls_back_on_error(self, pool: ConnectionPool):
        with pytest.raises(RuntimeError):
            async with pool.transaction(immediate=True) as conn:
                await conn.execute("INSERT INTO items (qty) VALUES (3)")
                raise RuntimeError("boom")
        async with pool.acquire() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM items")
            assert (await cursor.fetchone())[0] == 0

    async def test_second_immediate_writer_reports_busy(self, pool: ConnectionPool):
        async with pool.transaction(immediate=True) as conn:
            await conn.execute("INSERT INTO items (qty) VALUES (1)")
            with pytest.raises(DatabaseBusyError) as exc_info:
                async with pool.transaction(immediate=True):
                    pass
            assert exc_info.value.code == "DATABASE_BUSY"

    async def test_close_resets_pool(self, tmp_path: Path):
        pool = ConnectionPool(tmp_path / "close.db", pool_size=1)
        await pool.initialize()
        await pool.close()
        assert pool._connections == []
        assert pool._initialized is False


class TestCancelledWhileWaitingForLock:
    """A writer timed out inside BEGIN IMMEDIATE must not keep the lock."""

    @pytest.fixture
    async def single(self, tmp_path: Path):
        pool = ConnectionPool(tmp_path / "single.db", pool_size=1, busy_timeout=5000)
        async with pool.acquire() as conn:
            await conn.execute("CREATE TABLE items (id INTEGER PRIMARY KEY, qty INTEGER NOT NULL)")
            await conn.commit()
        try:
            yield pool
        finally:
            await pool.close()

    async def _begin_and_insert(self, pool: ConnectionPool) -> None:
        async with pool.transaction(immediate=True) as conn:
            await conn.execute("INSERT INTO items (qty) VALUES (1)")

    async def test_connection_comes_back_clean(self, single: ConnectionPool):
        blocker = await aiosqlite.connect(single.db_path, timeout=0.5)
        try:
            await blocker.execute("BEGIN IMMEDIATE")
            with pytest.raises(TimeoutError):
                await asyncio.wait_for(self._begin_and_insert(single), timeout=0.2)
            await blocker.rollback()

            await asyncio.wait_for(self._begin_and_insert(single), timeout=5)

            await blocker.execute("BEGIN IMMEDIATE")
            await blocker.execute("INSERT INTO items (qty) VALUES (2)")
            await blocker.commit()
        finally:
            await blocker.close()

        async with single.acquire() as conn:
            assert conn.in_transaction is False
            cursor = await conn.execute("SELECT qty FROM items ORDER BY id")
            assert [row[0] for row in await cursor.fetchall()] == [1, 2]

    async def test_close_waits_for_pending_reset(self, single: ConnectionPool):
        blocker = await aiosqlite.connect(single.db_path, timeout=0.5)
        try:
            await blocker.execute("BEGIN IMMEDIATE")
            with pytest.raises(TimeoutError):
                await asyncio.wait_for(self._begin_and_insert(single), timeout=0.1)
            assert len(single._resets) == 1
            await blocker.rollback()
            await single.close()
            assert not single._resets
        finally:
            await blocker.close()


class TestUseConnection:
    async def test_reuses_given_connection(self, pool: ConnectionPool):
        async with pool.acquire() as conn:
            async with use_connection(conn) as db:
                assert db is conn


class TestTimestamps:
    def test_fixed_width_utc(self):
        value = datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)
        assert format_timestamp(value) == "2024-01-02T03:04:05.000000+00:00"

    def test_naive_treated_as_utc(self):
        assert format_timestamp(datetime(2024, 1, 2)) == "2024-01-02T00:00:00.000000+00:00"

    def test_other_offsets_converted(self):
        value = datetime(2024, 1, 2, 5, 0, tzinfo=timezone(timedelta(hours=2)))
        assert format_timestamp(value) == "2024-01-02T03:00:00.000000+00:00"

    def test_round_trip(self):
        value = datetime(2024, 6, 1, 8, 30, 15, 123456, tzinfo=UTC)
        assert parse_timestamp(format_timestamp(value)) == value

    def test_parse_legacy_naive(self):
        assert parse_timestamp("2024-06-01 08:30:15").tzinfo is not None

    @pytest.mark.parametrize("value", [None, "", "not a date"])
    def test_parse_invalid(self, value):
        assert parse_timestamp(value) is None
