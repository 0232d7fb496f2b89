from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from .errors import StorageError
from .item import AuthorIdentity

SCHEMA_VERSION = 1


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class AuthorCache(Protocol):
    def get(self, uid: str) -> AuthorIdentity | None: ...

    def set(self, uid: str, identity: AuthorIdentity) -> None: ...


class MemoryAuthorCache:
    """Process-local author cache; the default when no cache path is configured."""

    def __init__(self) -> None:
        self._entries: dict[str, AuthorIdentity] = {}

    def get(self, uid: str) -> AuthorIdentity | None:
        return self._entries.get(str(uid))

    def set(self, uid: str, identity: AuthorIdentity) -> None:
        self._entries[str(uid)] = identity


_MIGRATIONS: dict[int, str] = {
    1: """
CREATE TABLE IF NOT EXISTS author_identities (
  uid TEXT PRIMARY KEY,
  name TEXT,
  face TEXT,
  updated_at TEXT NOT NULL
);
""".strip(),
}


def initialize_sqlite(conn: sqlite3.Connection) -> None:
    """
    Create or upgrade the cache schema.

    This function is idempotent: it can be called on every startup.
    """
    conn.execute("PRAGMA busy_timeout = 5000")
    with conn:
        conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_migrations ("
            "version INTEGER PRIMARY KEY, applied_at TEXT NOT NULL)"
        )
    applied = {
        int(row[0]) for row in conn.execute("SELECT version FROM schema_migrations").fetchall()
    }
    for version in sorted(_MIGRATIONS):
        if version in applied:
            continue
        with conn:
            conn.executescript(_MIGRATIONS[version])
            conn.execute(
                "INSERT INTO schema_migrations(version, applied_at) VALUES (?, ?)",
                (version, _utc_now_iso()),
            )


class SQLiteAuthorCache:
    """
    Author name and avatar per uid, persisted across runs.

    Only the feed owner's identity is stored; nothing else about a feed is kept.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._conn.row_factory = sqlite3.Row

    @classmethod
    def open(cls, path: str | Path) -> "SQLiteAuthorCache":
        db_path = str(path)
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        try:
            conn = sqlite3.connect(db_path)
        except sqlite3.DatabaseError as e:
            raise StorageError(f"Failed to open sqlite database: {db_path}: {e}") from e

        try:
            initialize_sqlite(conn)
        except Exception as e:
            conn.close()
            raise StorageError(f"Failed to initialize sqlite schema: {e}") from e

        return cls(conn)

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "SQLiteAuthorCache":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def get(self, uid: str) -> AuthorIdentity | None:
        try:
            row = self._conn.execute(
                "SELECT name, face FROM author_identities WHERE uid = ?",
                (str(uid),),
            ).fetchone()
        except sqlite3.DatabaseError as e:
            raise StorageError(f"Failed to read author identity for {uid}: {e}") from e

        if row is None:
            return None
        return AuthorIdentity(name=row["name"], face=row["face"])

    def set(self, uid: str, identity: AuthorIdentity) -> None:
        try:
            with self._conn:
                self._conn.execute(
                    """
                    INSERT INTO author_identities(uid, name, face, updated_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(uid) DO UPDATE SET
                      name = excluded.name,
                      face = excluded.face,
                      updated_at = excluded.updated_at
                    """.strip(),
                    (str(uid), identity.name, identity.face, _utc_now_iso()),
                )
        except sqlite3.DatabaseError as e:
            raise StorageError(f"Failed to write author identity for {uid}: {e}") from e
