from __future__ import annotations

import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Mapping, Protocol

from news_monitor.normalize import tokens_from_json, tokens_to_json

KEYWORDS_KEY = "filters.keywords"
TOPICS_KEY = "filters.topics"

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS settings (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


class SettingsStore(Protocol):
    def load(self, key: str) -> tuple[str, ...] | None: ...

    def save(self, key: str, values: Iterable[str]) -> None: ...

    def load_many(self, keys: Iterable[str]) -> dict[str, tuple[str, ...] | None]: ...

    def save_many(self, values_by_key: Mapping[str, Iterable[str]]) -> None: ...


class MemorySettingsStore:
    def __init__(self, initial: dict[str, Iterable[str]] | None = None) -> None:
        self._lock = threading.Lock()
        self._values: dict[str, tuple[str, ...]] = {
            key: tuple(values) for key, values in (initial or {}).items()
        }

    def load(self, key: str) -> tuple[str, ...] | None:
        return self.load_many([key])[key]

    def load_many(self, keys: Iterable[str]) -> dict[str, tuple[str, ...] | None]:
        with self._lock:
            return {key: self._values.get(key) for key in keys}

    def save(self, key: str, values: Iterable[str]) -> None:
        self.save_many({key: values})

    def save_many(self, values_by_key: Mapping[str, Iterable[str]]) -> None:
        replacement = {key: tuple(values) for key, values in values_by_key.items()}
        with self._lock:
            self._values.update(replacement)


class SQLiteSettingsStore:
    """Key-value settings persisted as JSON string lists in SQLite."""

    def __init__(self, db_path: str) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.connection = sqlite3.connect(self.db_path)
        self.connection.row_factory = sqlite3.Row

    def close(self) -> None:
        self.connection.close()

    def initialize(self) -> None:
        with self.connection:
            self.connection.executescript(SCHEMA_SQL)

    def load(self, key: str) -> tuple[str, ...] | None:
        return self.load_many([key])[key]

    def load_many(self, keys: Iterable[str]) -> dict[str, tuple[str, ...] | None]:
        key_list = list(keys)
        loaded: dict[str, tuple[str, ...] | None] = {key: None for key in key_list}
        if not key_list:
            return loaded
        placeholders = ",".join("?" for _ in key_list)
        # One statement reads all keys from the same snapshot.
        rows = self.connection.execute(
            f"SELECT key, value FROM settings WHERE key IN ({placeholders})",
            key_list,
        ).fetchall()
        for row in rows:
            loaded[str(row["key"])] = tokens_from_json(str(row["value"]))
        return loaded

    def save(self, key: str, values: Iterable[str]) -> None:
        self.save_many({key: values})

    def save_many(self, values_by_key: Mapping[str, Iterable[str]]) -> None:
        if not values_by_key:
            return
        now_iso = datetime.now(timezone.utc).isoformat()
        with self.connection:
            self.connection.executemany(
                """
                INSERT INTO settings (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                [(key, tokens_to_json(values), now_iso) for key, values in values_by_key.items()],
            )
