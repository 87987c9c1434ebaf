import asyncio
import sqlite3
from contextlib import contextmanager
from typing import Any, Callable, NamedTuple, Optional, TypeVar

from fastapi import Request
from loguru import logger

from database_schemas import ALL_TABLE_SCHEMAS
from errors import DatabaseError, IntegrityViolation

T = TypeVar("T")


class WriteResult(NamedTuple):
    lastrowid: Optional[int]
    rowcount: int


class Database:
    """Storage access for one SQLite file.

    A connection is opened per call and closed right after, so the object
    holds no handle between requests and can be shared freely. The async
    methods run the blocking driver in a worker thread; every driver error
    comes back as ``DatabaseError`` (``IntegrityViolation`` for constraint
    failures).
    """

    def __init__(self, path: str, timeout: float = 5.0):
        self.path = path
        self.timeout = timeout

    @contextmanager
    def get_db(self):
        conn = sqlite3.connect(self.path, timeout=self.timeout)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def init(self):
        with self.get_db() as conn:
            cursor = conn.cursor()
            for schema in ALL_TABLE_SCHEMAS:
                cursor.execute(schema)
            conn.commit()
        logger.info("Database ready at {}", self.path)

    async def _run(self, fn: Callable[[sqlite3.Connection], T]) -> T:
        def call():
            try:
                with self.get_db() as conn:
                    return fn(conn)
            except sqlite3.IntegrityError as exc:
                raise IntegrityViolation(str(exc)) from exc
            except sqlite3.Error as exc:
                raise DatabaseError(str(exc)) from exc

        return await asyncio.to_thread(call)

    async def fetch_one(self, sql: str, params: tuple = ()) -> Optional[dict]:
        def query(conn):
            row = conn.execute(sql, params).fetchone()
            return dict(row) if row else None

        return await self._run(query)

    async def fetch_all(self, sql: str, params: tuple = ()) -> list[dict]:
        def query(conn):
            return [dict(row) for row in conn.execute(sql, params).fetchall()]

        return await self._run(query)

    async def fetch_value(self, sql: str, params: tuple = ()) -> Any:
        def query(conn):
            row = conn.execute(sql, params).fetchone()
            return row[0] if row else None

        return await self._run(query)

    async def execute(self, sql: str, params: tuple = ()) -> WriteResult:
        def write(conn):
            cursor = conn.execute(sql, params)
            conn.commit()
            return WriteResult(cursor.lastrowid, cursor.rowcount)

        return await self._run(write)

    async def transaction(self, fn: Callable[[sqlite3.Connection], T]) -> T:
        """Run ``fn(conn)`` inside ``BEGIN IMMEDIATE``.

        The write lock is taken up front, so a read followed by a write in
        ``fn`` cannot interleave with another writer. Any exception rolls
        the whole block back.
        """

        def atomic(conn):
            conn.isolation_level = None
            conn.execute("BEGIN IMMEDIATE")
            try:
                result = fn(conn)
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
            return result

        return await self._run(atomic)


def ensure_default_admin(db: Database, username: str, make_password_hash: Callable[[], str], name: str) -> bool:
    """Create the bootstrap admin account when the users table is empty.

    The hash is only computed when the account is actually created.
    """
    with db.get_db() as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT COUNT(*) FROM users")
        if cursor.fetchone()[0] > 0:
            return False
        cursor.execute(
            "INSERT INTO users (username, password, name, is_admin) VALUES (?, ?, ?, 1)",
            (username.lower(), make_password_hash(), name),
        )
        conn.commit()
    logger.info("Default admin user created: {}", username.lower())
    return True


def get_database(request: Request) -> Database:
    return request.app.state.db
