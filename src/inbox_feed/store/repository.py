"""Repositories for the credential and cache collections."""

from __future__ import annotations

import sqlite3

import structlog

from inbox_feed.models import CacheEntry, Credential
from inbox_feed.store.database import Database

logger = structlog.get_logger()


def _key(user_email: str) -> str:
    return user_email.strip().lower()


class CredentialRepository:
    """One OAuth credential document per user identity."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def get(self, user_email: str) -> Credential | None:
        row = self._db.connection.execute(
            "SELECT document FROM credentials WHERE user_email = ?",
            (_key(user_email),),
        ).fetchone()
        if row is None:
            return None
        return Credential.model_validate_json(row["document"])

    def upsert(self, credential: Credential) -> None:
        """Replace the stored credential for ``credential.user_email``."""

        conn = self._db.connection
        with conn:
            conn.execute(
                """
                INSERT INTO credentials (user_email, document, updated_at_iso)
                VALUES (?, ?, ?)
                ON CONFLICT(user_email) DO UPDATE SET
                    document=excluded.document,
                    updated_at_iso=excluded.updated_at_iso
                """,
                (
                    _key(credential.user_email),
                    credential.model_dump_json(by_alias=True),
                    credential.updated_at.isoformat(),
                ),
            )
        logger.debug("credential_upserted", user_email=credential.user_email)

    def delete(self, user_email: str) -> bool:
        conn = self._db.connection
        with conn:
            cursor = conn.execute(
                "DELETE FROM credentials WHERE user_email = ?",
                (_key(user_email),),
            )
        deleted = cursor.rowcount > 0
        logger.info("credential_deleted", user_email=user_email, deleted=deleted)
        return deleted

    def list_all(self) -> list[Credential]:
        rows = self._db.connection.execute(
            "SELECT document FROM credentials ORDER BY user_email"
        ).fetchall()
        return [self._row_to_credential(row) for row in rows]

    def _row_to_credential(self, row: sqlite3.Row) -> Credential:
        return Credential.model_validate_json(row["document"])


class CacheRepository:
    """Last fetched inbox per user identity."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def get(self, user_email: str) -> CacheEntry | None:
        row = self._db.connection.execute(
            "SELECT document FROM inbox_cache WHERE user_email = ?",
            (_key(user_email),),
        ).fetchone()
        if row is None:
            return None
        return CacheEntry.model_validate_json(row["document"])

    def upsert(self, entry: CacheEntry) -> None:
        """Replace the cached inbox for ``entry.user_email`` wholesale."""

        conn = self._db.connection
        with conn:
            conn.execute(
                """
                INSERT INTO inbox_cache (user_email, document, last_fetched_iso)
                VALUES (?, ?, ?)
                ON CONFLICT(user_email) DO UPDATE SET
                    document=excluded.document,
                    last_fetched_iso=excluded.last_fetched_iso
                """,
                (
                    _key(entry.user_email),
                    entry.model_dump_json(by_alias=True),
                    entry.last_fetched.isoformat(),
                ),
            )
        logger.debug(
            "inbox_cache_upserted",
            user_email=entry.user_email,
            kind=entry.kind.value,
            item_count=len(entry.items),
        )

    def delete(self, user_email: str) -> bool:
        conn = self._db.connection
        with conn:
            cursor = conn.execute(
                "DELETE FROM inbox_cache WHERE user_email = ?",
                (_key(user_email),),
            )
        deleted = cursor.rowcount > 0
        logger.info("inbox_cache_deleted", user_email=user_email, deleted=deleted)
        return deleted
