"""SQLite-backed document store.

A single ``Database`` is constructed and opened by the process (the API app or
the CLI) and handed to the repositories. Each repository write is one statement
in its own transaction, so a single upsert is atomic.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

import structlog

from inbox_feed.exceptions import StorageError

logger = structlog.get_logger()


_SCHEMA_VERSION = 1


class Database:
    """Owns the SQLite connection shared by the repositories."""

    def __init__(self, db_path: Path | str) -> None:
        """Create a database handle.

        Args:
            db_path: Path to the SQLite database file, or ":memory:".
        """

        self._db_path = str(db_path)
        self._conn: sqlite3.Connection | None = None

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageError("Database is not open. Call Database.open() first.")
        return self._conn

    def open(self) -> None:
        """Open the connection and create or check the schema. Idempotent."""

        if self._conn is not None:
            return

        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)

        # Requests and sweeps may run on worker threads.
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        try:
            self._initialize(conn)
        except Exception:
            conn.close()
            raise
        self._conn = conn
        logger.info("database_opened", db_path=self._db_path)

    def close(self) -> None:
        if self._conn is None:
            return
        self._conn.close()
        self._conn = None
        logger.info("database_closed", db_path=self._db_path)

    def _initialize(self, conn: sqlite3.Connection) -> None:
        if self._db_path != ":memory:":
            conn.execute("PRAGMA journal_mode=WAL;")

        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS _schema_meta (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
            """
        )

        current_version = self._get_schema_version(conn)
        if current_version is None:
            self._create_schema_v1(conn)
            self._set_schema_version(conn, _SCHEMA_VERSION)
            conn.commit()
            logger.info("database_schema_created", version=_SCHEMA_VERSION)
            return

        if current_version != _SCHEMA_VERSION:
            raise StorageError(
                f"Unsupported schema version {current_version}; expected {_SCHEMA_VERSION}"
            )

    def _get_schema_version(self, conn: sqlite3.Connection) -> int | None:
        row = conn.execute(
            "SELECT value FROM _schema_meta WHERE key = 'schema_version'"
        ).fetchone()
        if row is None:
            return None
        return int(row[0])

    def _set_schema_version(self, conn: sqlite3.Connection, version: int) -> None:
        conn.execute(
            "INSERT OR REPLACE INTO _schema_meta(key, value) VALUES('schema_version', ?) ",
            (str(version),),
        )

    def _create_schema_v1(self, conn: sqlite3.Connection) -> None:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS credentials (
                user_email TEXT PRIMARY KEY,
                document TEXT NOT NULL,
                updated_at_iso TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS inbox_cache (
                user_email TEXT PRIMARY KEY,
                document TEXT NOT NULL,
                last_fetched_iso TEXT NOT NULL
            );
            """
        )
