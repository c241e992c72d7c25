"""Key-value storage behind the dashboard, drafts and citation lists.

Every piece of client state lives under a string key, exactly as the
browser client keeps it in local storage.  ``KeyValueStore`` is the
interface call sites depend on; SQLite and in-memory backends ship here
and another backend only has to implement the same four methods.
"""

import json
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Protocol

# Key schema
USER_KEY = "researchflow_user"
THEME_KEY = "researchflow_theme"
PAPERS_KEY = "researchflow_papers"


def section_key(paper_id: str, section_id: str) -> str:
    return f"paper_{paper_id}_section_{section_id}"


def versions_key(paper_id: str, section_id: str) -> str:
    return f"paper_{paper_id}_section_{section_id}_versions"


def sources_key(paper_id: str) -> str:
    return f"paper_{paper_id}_sources"


class KeyValueStore(Protocol):
    """String-to-string storage addressed by composite keys."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self, prefix: str = "") -> list[str]: ...


class SQLiteKeyValueStore:
    """Key-value store persisted to a single SQLite table."""

    def __init__(self, db_path: Path):
        """Initialize store with database path.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path
        self._init_db()

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
            """)
            conn.commit()

    def get(self, key: str) -> str | None:
        with self._connection() as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        with self._connection() as conn:
            conn.execute(
                """
                INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, value, now),
            )
            conn.commit()

    def delete(self, key: str) -> None:
        with self._connection() as conn:
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))
            conn.commit()

    def keys(self, prefix: str = "") -> list[str]:
        # LIKE treats _ as a wildcard and every key contains one
        with self._connection() as conn:
            rows = conn.execute("SELECT key FROM kv ORDER BY key").fetchall()
        return [row["key"] for row in rows if row["key"].startswith(prefix)]


class MemoryKeyValueStore:
    """Dict-backed store for tests and throwaway sessions."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self, prefix: str = "") -> list[str]:
        with self._lock:
            return sorted(k for k in self._data if k.startswith(prefix))


def get_json(store: KeyValueStore, key: str, default: Any = None) -> Any:
    """Read and decode a JSON value; undecodable values count as missing."""
    raw = store.get(key)
    if raw is None:
        return default
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return default


def set_json(store: KeyValueStore, key: str, value: Any) -> None:
    """Encode *value* as JSON and store it under *key*."""
    store.set(key, json.dumps(value, ensure_ascii=False))
