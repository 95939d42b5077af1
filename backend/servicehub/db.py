"""
SQLite storage handle shared by the account and booking stores.

A single ``Database`` is constructed at process start, opened once,
injected into every store and closed on shutdown.  All access goes
through ``transaction()``, which serialises use of the shared
connection, commits on success and rolls back on error.  Driver
failures other than constraint violations are re-raised as
``StoreUnavailableError`` so callers never see ``sqlite3`` internals.
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from threading import Lock
from typing import Iterator, Optional

from servicehub.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        email TEXT NOT NULL UNIQUE,
        phone TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS providers (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        email TEXT NOT NULL UNIQUE,
        phone TEXT NOT NULL UNIQUE,
        service_type TEXT NOT NULL,
        password_hash TEXT NOT NULL,
        experience INTEGER,
        price_per_visit REAL,
        city TEXT,
        pincode TEXT,
        address TEXT,
        about TEXT,
        is_profile_complete INTEGER NOT NULL DEFAULT 0,
        is_available INTEGER NOT NULL DEFAULT 1,
        rating REAL NOT NULL DEFAULT 0,
        total_jobs INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS bookings (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL REFERENCES users(id),
        provider_id TEXT NOT NULL REFERENCES providers(id),
        service_type TEXT NOT NULL,
        city TEXT,
        address TEXT NOT NULL DEFAULT '',
        pincode TEXT NOT NULL DEFAULT '',
        booking_date TEXT NOT NULL,
        time_slot TEXT NOT NULL,
        price REAL,
        status TEXT NOT NULL DEFAULT 'Pending'
            CHECK (status IN ('Pending', 'Accepted', 'Rejected', 'Completed')),
        created_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_bookings_provider ON bookings(provider_id, created_at)",
    "CREATE INDEX IF NOT EXISTS idx_bookings_user ON bookings(user_id, created_at)",
)


class Database:
    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        self._lock = Lock()
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def open(self) -> None:
        if self._conn is not None:
            return
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        try:
            conn = sqlite3.connect(self.db_path, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
            for statement in SCHEMA:
                conn.execute(statement)
            conn.commit()
        except sqlite3.Error as exc:
            raise StoreUnavailableError(f"Cannot open database at {self.db_path}") from exc
        self._conn = conn
        logger.info("Database opened at %s", self.db_path)

    def close(self) -> None:
        with self._lock:
            if self._conn is None:
                return
            self._conn.close()
            self._conn = None
        logger.info("Database closed")

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            conn = self._conn
            if conn is None:
                raise StoreUnavailableError("Database is not open")
            try:
                yield conn
                conn.commit()
            except sqlite3.IntegrityError:
                conn.rollback()
                raise
            except sqlite3.Error as exc:
                conn.rollback()
                raise StoreUnavailableError("Database operation failed") from exc
            except BaseException:
                conn.rollback()
                raise
