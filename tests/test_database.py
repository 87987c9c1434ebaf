"""Tests for the storage access layer."""

import asyncio

import pytest

from database import Database, ensure_default_admin
from errors import DatabaseError, IntegrityViolation


@pytest.fixture
def store(tmp_path) -> Database:
    database = Database(str(tmp_path / "store.db"))
    database.init()
    return database


def test_init_creates_all_tables(store):
    with store.get_db() as conn:
        tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")}

    assert {"users", "posts", "comments", "likes", "chats", "messages", "reports", "admin_messages"} <= tables


def test_init_is_idempotent(store):
    store.init()


@pytest.mark.asyncio
async def test_execute_and_fetch(store):
    result = await store.execute(
        "INSERT INTO users (username, password, name) VALUES (?, ?, ?)", ("amina", "hash", "Amina")
    )

    assert result.lastrowid == 1
    assert result.rowcount == 1
    row = await store.fetch_one("SELECT id, username, is_admin FROM users WHERE id = ?", (1,))
    assert row == {"id": 1, "username": "amina", "is_admin": 0}
    assert await store.fetch_value("SELECT COUNT(*) FROM users") == 1
    assert await store.fetch_all("SELECT username FROM users") == [{"username": "amina"}]


@pytest.mark.asyncio
async def test_fetch_one_missing_row(store):
    assert await store.fetch_one("SELECT * FROM users WHERE id = ?", (5,)) is None


@pytest.mark.asyncio
async def test_unique_violation_is_reported(store):
    await store.execute("INSERT INTO users (username, password, name) VALUES ('amina', 'h', 'A')")

    with pytest.raises(IntegrityViolation):
        await store.execute("INSERT INTO users (username, password, name) VALUES ('amina', 'h', 'B')")


@pytest.mark.asyncio
async def test_driver_errors_become_database_error(store):
    with pytest.raises(DatabaseError) as exc_info:
        await store.fetch_all("SELECT * FROM no_such_table")

    assert "no_such_table" in str(exc_info.value)
    assert exc_info.value.message == "Database error"


@pytest.mark.asyncio
async def test_transaction_commits(store):
    def insert_two(conn):
        conn.execute("INSERT INTO users (username, password, name) VALUES ('a', 'h', 'A')")
        conn.execute("INSERT INTO users (username, password, name) VALUES ('b', 'h', 'B')")
        return "done"

    assert await store.transaction(insert_two) == "done"
    assert await store.fetch_value("SELECT COUNT(*) FROM users") == 2


@pytest.mark.asyncio
async def test_transaction_rolls_back_on_error(store):
    def half_done(conn):
        conn.execute("INSERT INTO users (username, password, name) VALUES ('a', 'h', 'A')")
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await store.transaction(half_done)

    assert await store.fetch_value("SELECT COUNT(*) FROM users") == 0


@pytest.mark.asyncio
async def test_like_pair_is_unique(store):
    await store.execute("INSERT INTO likes (post_id, user_id) VALUES (1, 1)")

    with pytest.raises(IntegrityViolation):
        await store.execute("INSERT INTO likes (post_id, user_id) VALUES (1, 1)")


@pytest.mark.asyncio
async def test_concurrent_reads(store):
    await store.execute("INSERT INTO users (username, password, name) VALUES ('a', 'h', 'A')")

    counts = await asyncio.gather(*(store.fetch_value("SELECT COUNT(*) FROM users") for _ in range(4)))

    assert counts == [1, 1, 1, 1]


def test_default_admin_only_on_empty_table(store):
    hashed = []

    def make_hash():
        hashed.append(True)
        return "hash"

    assert ensure_default_admin(store, "Admin", make_hash, "Admin User") is True
    assert ensure_default_admin(store, "other", make_hash, "Other") is False

    assert hashed == [True]
    with store.get_db() as conn:
        rows = conn.execute("SELECT username, is_admin FROM users").fetchall()
    assert [(r["username"], r["is_admin"]) for r in rows] == [("admin", 1)]
