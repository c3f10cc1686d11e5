"""SQLite connection manager for the ledger database."""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

logger = logging.getLogger(__name__)

MEMORY = ":memory:"


class Database:
    """SQLite database with WAL mode and foreign key enforcement.

    One connection is shared by every thread that uses this object (the
    valuation fan-out reads ledgers from worker threads); statements are
    serialized through an internal re-entrant lock.
    """

    def __init__(self, path: str | Path):
        self.path: Path | str = (
            MEMORY if str(path) == MEMORY else Path(path).expanduser().resolve()
        )
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()

    @property
    def is_memory(self) -> bool:
        return self.path == MEMORY

    def connect(self) -> sqlite3.Connection:
        if self._conn is not None:
            return self._conn

        with self._lock:
            if self._conn is not None:
                return self._conn
            if not self.is_memory:
                self.path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.path), check_same_thread=False)
            conn.row_factory = sqlite3.Row
            if not self.is_memory:
                conn.execute("PRAGMA journal_mode = WAL")
            conn.execute("PRAGMA foreign_keys = ON")
            conn.execute("PRAGMA busy_timeout = 5000")
            self._conn = conn
            logger.debug("Connected to ledger database: %s", self.path)
        return self._conn

    @property
    def conn(self) -> sqlite3.Connection:
        return self.connect()

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                logger.debug("Closed ledger database")

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Cursor, None, None]:
        """Run the enclosed statements atomically; roll back on any error."""
        with self._lock:
            conn = self.connect()
            cursor = conn.cursor()
            try:
                yield cursor
                conn.commit()
            except Exception:
                conn.rollback()
                raise

    def execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        with self._lock:
            return self.conn.execute(sql, params)

    def executescript(self, sql: str) -> None:
        with self._lock:
            self.conn.executescript(sql)

    def fetchone(self, sql: str, params: tuple = ()) -> sqlite3.Row | None:
        with self._lock:
            return self.conn.execute(sql, params).fetchone()

    def fetchall(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        with self._lock:
            return self.conn.execute(sql, params).fetchall()

    def schema_version(self) -> int:
        """Highest applied migration, 0 for a fresh database."""
        try:
            row = self.fetchone("SELECT MAX(version) AS v FROM _schema_version")
        except sqlite3.OperationalError:
            return 0
        return row["v"] if row and row["v"] is not None else 0

    def __enter__(self) -> "Database":
        self.connect()
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Database({self.path})"
