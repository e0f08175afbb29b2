"""Tests for database lifecycle and schema."""

from pathlib import Path

import pytest

from profilereview.database.database import Database
from profilereview.database.db_connection import ConnectionManager


@pytest.mark.asyncio
async def test_initialize_creates_tables(tmp_path: Path):
    db = Database(tmp_path / "nested" / "app.db")

    assert await db.initialize() is True
    assert await db.initialize() is True

    cursor = await db.connections.connection.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
    tables = {row[0] for row in await cursor.fetchall()}
    assert {"users", "user_reviews", "notifications", "schema_version"} <= tables

    await db.shutdown()
    assert db.connections.is_open is False
    await db.shutdown()


@pytest.mark.asyncio
async def test_connection_requires_open():
    with pytest.raises(RuntimeError):
        ConnectionManager().connection


@pytest.mark.asyncio
async def test_transaction_rolls_back_on_error(connections):
    with pytest.raises(ValueError):
        async with connections.transaction() as conn:
            await conn.execute("INSERT INTO users (id) VALUES (1)")
            raise ValueError("abort")

    cursor = await connections.connection.execute("SELECT COUNT(*) FROM users")
    assert (await cursor.fetchone())[0] == 0


@pytest.mark.asyncio
async def test_transaction_commits(connections):
    async with connections.transaction() as conn:
        await conn.execute("INSERT INTO users (id) VALUES (1)")

    async with connections.read() as conn:
        cursor = await conn.execute("SELECT COUNT(*) FROM users")
        assert (await cursor.fetchone())[0] == 1


@pytest.mark.asyncio
async def test_initialize_failure_returns_false(tmp_path: Path):
    blocker = tmp_path / "file"
    blocker.write_text("x")
    db = Database(blocker / "app.db")
    assert await db.initialize() is False
